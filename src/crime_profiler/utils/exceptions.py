class CrimeProfilerException(Exception):
    """Base Exception Class"""
    pass
class ApiRequestError(CrimeProfilerException):
    """Error class for when a call to the crime profiler API fails or returns garbage"""
    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code
class ConfigError(CrimeProfilerException):
    """Config Error"""
    pass
