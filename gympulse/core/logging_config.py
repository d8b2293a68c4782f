import os
import logging
import logging.handlers
import re
import sys
from pathlib import Path
from typing import Optional


class SecurityFilter(logging.Filter):
    """Mask tokens and credentials before a record reaches any handler"""

    SENSITIVE_PATTERNS = [
        # JWT tokens (eyJ...)
        (r'eyJ[A-Za-z0-9_-]*\.[A-Za-z0-9_-]*\.[A-Za-z0-9_-]*', '[JWT_TOKEN]'),
        (r'Bearer\s+[A-Za-z0-9._-]+', 'Bearer [TOKEN]'),
        (r'password["\s]*[:=]["\s]*[^,}\s]+', 'password: [HIDDEN]'),
        (r'secret["\s]*[:=]["\s]*[^,}\s]+', 'secret: [HIDDEN]'),
        # bcrypt hashes
        (r'\$2[aby]\$\d{2}\$[./A-Za-z0-9]{53}', '[PASSWORD_HASH]'),
        (r'session-id[a-f0-9]{32,}', 'session-id[SESSION]'),
    ]

    def filter(self, record):
        if hasattr(record, 'msg'):
            msg = str(record.msg)
            for pattern, replacement in self.SENSITIVE_PATTERNS:
                msg = re.sub(pattern, replacement, msg, flags=re.IGNORECASE)
            record.msg = msg
        return True


def setup_logging():
    """Configure application logging based on environment variables"""

    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    sql_log_level = os.getenv("SQL_LOG_LEVEL", "WARNING").upper()
    log_format = os.getenv("LOG_FORMAT", "text").lower()

    default_log_path = Path(__file__).resolve().parents[2] / "logs" / "gympulse.log"
    log_file_path = os.getenv("LOG_FILE_PATH", str(default_log_path))
    auth_log_events = os.getenv("AUTH_LOG_EVENTS", "true").lower() == "true"
    enable_security_filter = os.getenv("ENABLE_SECURITY_FILTER", "true").lower() == "true"

    Path(log_file_path).parent.mkdir(parents=True, exist_ok=True)

    if log_format == "json":
        formatter = logging.Formatter(
            '{"timestamp": "%(asctime)s", "level": "%(levelname)s", '
            '"module": "%(name)s", "message": "%(message)s", '
            '"line": %(lineno)d, "function": "%(funcName)s"}'
        )
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    level = getattr(logging, log_level, logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    security_filter = SecurityFilter() if enable_security_filter else None

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    if security_filter:
        console_handler.addFilter(security_filter)
    root_logger.addHandler(console_handler)

    file_handler = logging.handlers.RotatingFileHandler(
        log_file_path,
        maxBytes=10*1024*1024,  # 10MB
        backupCount=5
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    if security_filter:
        file_handler.addFilter(security_filter)
    root_logger.addHandler(file_handler)

    logging.getLogger('sqlalchemy.engine').setLevel(
        getattr(logging, sql_log_level, logging.WARNING)
    )
    logging.getLogger('gympulse').setLevel(level)
    logging.getLogger('gympulse.auth').setLevel(logging.INFO if auth_log_events else logging.ERROR)

    root_logger.info(
        "Logging initialized level=%s sql=%s file=%s",
        log_level,
        sql_log_level,
        log_file_path,
    )
    return root_logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for the given module name"""
    return logging.getLogger(f"gympulse.{name}")


def log_auth_event(event_type: str, username: Optional[str] = None,
                   session_id: Optional[str] = None, success: bool = True):
    """Log authentication events without exposing the raw session id"""
    auth_logger = get_logger("auth")
    session_hash = hash(session_id) % 10000 if session_id else "unknown"

    if success:
        auth_logger.info(
            "Auth %s successful - user: %s session: #%s",
            event_type, username or "unknown", session_hash,
        )
    else:
        auth_logger.warning(
            "Auth %s failed - user: %s session: #%s",
            event_type, username or "unknown", session_hash,
        )


def log_security_event(event_type: str, details: str, level: str = "WARNING"):
    """Log security-related events"""
    security_logger = get_logger("security")
    log_level = getattr(logging, level.upper(), logging.WARNING)
    security_logger.log(log_level, "Security event: %s - %s", event_type, details)
