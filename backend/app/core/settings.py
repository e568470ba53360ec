import os


class Settings:
    def __init__(self):
        self.app_name = "ProTeam Workforce"
        self.api_version = "1.0.0"
        self.environment = os.getenv("ENVIRONMENT", "development")
        self.secret_key = os.getenv("SECRET_KEY", "CHANGE_ME")
        self.SECRET_KEY = self.secret_key
        self.access_token_expire_minutes = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30"))
        self.ACCESS_TOKEN_EXPIRE_MINUTES = self.access_token_expire_minutes
        self.database_url = os.getenv("DATABASE_URL", "sqlite:///./workforce.db")
        self.log_level = os.getenv("LOG_LEVEL", "INFO")

        # Remote serverless functions (email, PDF). Empty means log-only dispatch.
        self.functions_base_url = os.getenv("FUNCTIONS_BASE_URL", "")
        self.functions_api_key = os.getenv("FUNCTIONS_API_KEY", "")
        self.functions_timeout_seconds = float(os.getenv("FUNCTIONS_TIMEOUT_SECONDS", "10"))

        # Timesheet calendar: Monday=0 ... Sunday=6
        self.hours_per_day = int(os.getenv("HOURS_PER_DAY", "8"))
        self.week_end_day = int(os.getenv("WEEK_END_DAY", "6"))


_settings_instance = None


def get_settings():
    """Return a singleton Settings instance."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
