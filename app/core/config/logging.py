"""
Logging Configuration
"""
from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path


class LogConfig(BaseSettings):
    """Logging configuration settings"""

    model_config = SettingsConfigDict(env_prefix="LOG_", extra="ignore")

    LEVEL: str = Field("INFO", description="Logging level")
    FORMAT: str = Field(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        description="Log format string"
    )
    FILE: Optional[Path] = Field(
        None,
        description="Log file path (optional)"
    )

    @property
    def log_config(self) -> dict:
        """Get complete logging configuration dictionary"""
        config = {
            'version': 1,
            'disable_existing_loggers': False,
            'formatters': {
                'standard': {
                    'format': self.FORMAT
                },
            },
            'handlers': {
                'console': {
                    'class': 'logging.StreamHandler',
                    'formatter': 'standard',
                    'level': self.LEVEL
                }
            },
            'loggers': {
                '': {  # Root logger
                    'handlers': ['console'],
                    'level': self.LEVEL,
                    'propagate': True
                },
                # httpx logs every request at INFO
                'httpx': {
                    'level': 'WARNING'
                }
            }
        }

        # Add file handler if log file is specified
        if self.FILE:
            config['handlers']['file'] = {
                'class': 'logging.FileHandler',
                'filename': str(self.FILE),
                'formatter': 'standard',
                'level': self.LEVEL
            }
            config['loggers']['']['handlers'].append('file')

        return config
