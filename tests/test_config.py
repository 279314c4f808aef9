import pytest
from pathlib import Path
import sys

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from crime_profiler.config import DEFAULT_API_URL, Settings, load_settings
from crime_profiler.utils.exceptions import ConfigError

ENV_VARS = [
    'CRIME_PROFILER_API_URL',
    'CRIME_PROFILER_TIMEOUT',
    'CRIME_PROFILER_BUCKETS',
    'CRIME_PROFILER_BOUNDARIES',
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestLoadSettings:
    def test_defaults(self):
        settings = load_settings(dotenv=False)
        assert settings == Settings()
        assert settings.api_url == DEFAULT_API_URL
        assert settings.buckets == 10

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv('CRIME_PROFILER_API_URL', 'https://maps.example.org/api/')
        monkeypatch.setenv('CRIME_PROFILER_TIMEOUT', '12.5')
        monkeypatch.setenv('CRIME_PROFILER_BUCKETS', '7')
        monkeypatch.setenv('CRIME_PROFILER_BOUNDARIES', 'data/municipalities.geojson')
        settings = load_settings(dotenv=False)
        assert settings.api_url == 'https://maps.example.org/api'
        assert settings.timeout == 12.5
        assert settings.buckets == 7
        assert settings.boundaries_path == 'data/municipalities.geojson'

    def test_blank_values_use_defaults(self, monkeypatch):
        monkeypatch.setenv('CRIME_PROFILER_API_URL', '  ')
        monkeypatch.setenv('CRIME_PROFILER_BUCKETS', '')
        settings = load_settings(dotenv=False)
        assert settings.api_url == DEFAULT_API_URL
        assert settings.buckets == 10

    @pytest.mark.parametrize('name, raw', [
        ('CRIME_PROFILER_TIMEOUT', 'soon'),
        ('CRIME_PROFILER_BUCKETS', '2.5'),
        ('CRIME_PROFILER_BUCKETS', '0'),
        ('CRIME_PROFILER_TIMEOUT', '-1'),
    ])
    def test_invalid_numbers(self, monkeypatch, name, raw):
        monkeypatch.setenv(name, raw)
        with pytest.raises(ConfigError):
            load_settings(dotenv=False)

    def test_reads_dotenv_file(self, monkeypatch, tmp_path):
        (tmp_path / '.env').write_text('CRIME_PROFILER_BUCKETS=5\n')
        monkeypatch.chdir(tmp_path)
        assert load_settings().buckets == 5
