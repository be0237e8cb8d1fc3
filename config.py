import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


@dataclass
class Settings:
    # Application
    app_name: str = os.getenv("APP_NAME", "Library Management System")
    debug: bool = _env_flag("DEBUG", "False")

    # Snapshot file holding items, users and borrow records
    data_file: str = os.getenv("LIBRARY_DATA_FILE", "library_data.json")
    # Seed the sample catalog when the interactive menu starts on an empty store
    load_sample_data: bool = _env_flag("LOAD_SAMPLE_DATA", "True")

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "WARNING")

    # CLI output: plain | json | rich
    output_mode: str = os.getenv("LIB_CLI_OUTPUT", "plain")


settings = Settings()
