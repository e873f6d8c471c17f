from enum import Enum


class EnumEnvironment(str, Enum):
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


class EnumLogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class EnumSplitStrategy(str, Enum):
    PERIOD_CUTOFF = "period_cutoff"
    SPLIT_KEY = "split_key"


class EnumCheckpointBackend(str, Enum):
    FILE = "file"
    GRIDFS = "gridfs"
