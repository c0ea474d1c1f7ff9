"""
Unified console logging for the QuickTranslate CLI
Renders translator events and messages with consistent formatting
"""
import sys
import os
import logging
from datetime import datetime
from typing import Optional, Dict, Any, Callable
from enum import Enum

from quicktranslate.core.events import Event, EventType
from quicktranslate.core.models import RequestState, TranslatorState


class LogLevel(Enum):
    """Log levels with priority values"""
    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40
    CRITICAL = 50


class LogType(Enum):
    """Types of log messages for special handling"""
    GENERAL = "general"
    TRANSLATION_START = "translation_start"
    TRANSLATION_END = "translation_end"
    TRANSLATION_RESULT = "translation_result"
    ERROR_DETAIL = "error_detail"


class Colors:
    """ANSI color codes for terminal output"""
    NO_COLOR = os.environ.get('NO_COLOR') is not None or not sys.stdout.isatty()

    YELLOW = '' if NO_COLOR else '\033[93m'       # Headers
    WHITE = '' if NO_COLOR else '\033[97m'        # Main text
    GRAY = '' if NO_COLOR else '\033[90m'         # Technical details
    GREEN = '' if NO_COLOR else '\033[92m'        # Translations
    RED = '' if NO_COLOR else '\033[91m'          # Errors
    ENDC = '' if NO_COLOR else '\033[0m'          # Reset

    @classmethod
    def disable(cls):
        """Disable all colors"""
        cls.YELLOW = cls.WHITE = cls.GRAY = cls.GREEN = cls.RED = cls.ENDC = ''


class UnifiedLogger:
    """
    Console logger for the CLI, also usable as the UI side of the event bus
    """

    def __init__(self,
                 name: str = "QuickTranslate",
                 console_output: bool = True,
                 enable_colors: bool = True,
                 min_level: LogLevel = LogLevel.INFO,
                 storage_callback: Optional[Callable] = None):
        """
        Args:
            name: Logger name/identifier
            console_output: Whether to output to console
            enable_colors: Whether to use colored output
            min_level: Minimum log level to display
            storage_callback: Callback receiving every structured log entry
        """
        self.name = name
        self.console_output = console_output
        self.enable_colors = enable_colors
        self.min_level = min_level
        self.storage_callback = storage_callback
        self._started_at: Optional[datetime] = None

        if not enable_colors:
            Colors.disable()

    def _format_timestamp(self) -> str:
        return datetime.now().strftime("%H:%M:%S")

    def _format_console_message(self, level: LogLevel, message: str,
                                log_type: LogType = LogType.GENERAL,
                                data: Optional[Dict[str, Any]] = None) -> str:
        """Format message for console output"""
        data = data or {}
        if log_type == LogType.TRANSLATION_START:
            return self._format_translation_start(data)
        if log_type == LogType.TRANSLATION_RESULT:
            return self._format_translation_result(data)
        if log_type == LogType.TRANSLATION_END:
            return self._format_translation_end(message)
        if log_type == LogType.ERROR_DETAIL:
            return self._format_error_detail(message, data)

        level_colors = {
            LogLevel.DEBUG: Colors.GRAY,
            LogLevel.INFO: Colors.WHITE,
            LogLevel.WARNING: Colors.YELLOW,
            LogLevel.ERROR: Colors.RED,
            LogLevel.CRITICAL: Colors.RED
        }
        color = level_colors.get(level, Colors.WHITE)
        level_str = f"[{level.name}] " if level != LogLevel.INFO else ""
        return f"{color}[{self._format_timestamp()}] {level_str}{message}{Colors.ENDC}"

    def _format_translation_start(self, data: Dict[str, Any]) -> str:
        self._started_at = datetime.now()
        output = [f"{Colors.YELLOW}[{self._format_timestamp()}] TRANSLATING{Colors.ENDC}"]
        output.append(f"{Colors.WHITE}Languages: {data.get('source', '?')} → {data.get('target', '?')}{Colors.ENDC}")
        if data.get('endpoint'):
            output.append(f"{Colors.GRAY}Endpoint: {data['endpoint']}{Colors.ENDC}")
        return '\n'.join(output)

    def _format_translation_result(self, data: Dict[str, Any]) -> str:
        output = [f"{Colors.GREEN}{data.get('text', '')}{Colors.ENDC}"]
        if self._started_at:
            duration = (datetime.now() - self._started_at).total_seconds()
            output.append(f"{Colors.GRAY}Duration: {duration:.2f}s{Colors.ENDC}")
            self._started_at = None
        return '\n'.join(output)

    def _format_translation_end(self, message: str) -> str:
        return f"{Colors.GRAY}[{self._format_timestamp()}] {message}{Colors.ENDC}"

    def _format_error_detail(self, message: str, data: Dict[str, Any]) -> str:
        output = [f"{Colors.RED}[{self._format_timestamp()}] ERROR: {message}{Colors.ENDC}"]
        if 'details' in data:
            output.append(f"{Colors.RED}Details: {data['details']}{Colors.ENDC}")
        return '\n'.join(output)

    def log(self, level: LogLevel, message: str,
            log_type: LogType = LogType.GENERAL,
            data: Optional[Dict[str, Any]] = None):
        """
        Main logging method

        Args:
            level: Log level
            message: Log message
            log_type: Type of log for special formatting
            data: Additional data for the log entry
        """
        if level.value < self.min_level.value:
            return

        if self.console_output:
            try:
                console_msg = self._format_console_message(level, message, log_type, data)
                if console_msg:
                    print(console_msg, flush=True)
            except UnicodeEncodeError:
                # Consoles without UTF-8 (e.g. cp1252) cannot print every script
                safe_message = message.encode('ascii', 'replace').decode('ascii')
                print(f"[{self._format_timestamp()}] {safe_message}", flush=True)

        if self.storage_callback:
            self.storage_callback({
                'timestamp': datetime.now().isoformat(),
                'level': level.name,
                'type': log_type.value,
                'message': message,
                'data': data or {}
            })

    # Convenience methods
    def debug(self, message: str, log_type: LogType = LogType.GENERAL, data: Optional[Dict[str, Any]] = None):
        self.log(LogLevel.DEBUG, message, log_type, data)

    def info(self, message: str, log_type: LogType = LogType.GENERAL, data: Optional[Dict[str, Any]] = None):
        self.log(LogLevel.INFO, message, log_type, data)

    def warning(self, message: str, log_type: LogType = LogType.GENERAL, data: Optional[Dict[str, Any]] = None):
        self.log(LogLevel.WARNING, message, log_type, data)

    def error(self, message: str, log_type: LogType = LogType.GENERAL, data: Optional[Dict[str, Any]] = None):
        self.log(LogLevel.ERROR, message, log_type, data)

    def critical(self, message: str, log_type: LogType = LogType.GENERAL, data: Optional[Dict[str, Any]] = None):
        self.log(LogLevel.CRITICAL, message, log_type, data)

    def create_event_listener(self, endpoint: str = "") -> Callable[[Event], None]:
        """
        Create an event bus listener rendering translator events on the console
        """
        def listener(event: Event):
            if event.type == EventType.STATE_CHANGED:
                state: TranslatorState = event.data['state']
                if state.status == RequestState.PENDING:
                    self.info("Translating", LogType.TRANSLATION_START, {
                        'source': state.pair.source,
                        'target': state.pair.target,
                        'endpoint': endpoint,
                    })
                elif state.status == RequestState.SUCCEEDED:
                    self.info("Translation", LogType.TRANSLATION_RESULT, {'text': state.result_text})
                elif state.status == RequestState.FAILED:
                    self.error(state.error_message or "Translation failed", LogType.ERROR_DETAIL,
                               {'details': state.error_kind})
                elif state.status == RequestState.CANCELLED:
                    self.info("Translation cancelled", LogType.TRANSLATION_END)
            elif event.type == EventType.REQUEST_RETRY:
                self.warning(f"{event.data['error_kind']} on attempt {event.data['attempt']}, "
                             f"retrying in {event.data['delay']:.2f}s")
            elif event.type == EventType.LANGUAGES_CHANGED:
                self.info(f"Languages: {event.data['source']} → {event.data['target']}")
            elif event.type == EventType.SPEECH_FAILED:
                self.warning(f"Speech failed: {event.data['error']}")

        return listener


# Global logger instance
_global_logger = None


def get_logger(name: str = "QuickTranslate", **kwargs) -> UnifiedLogger:
    """
    Get or create the global logger instance

    Args:
        name: Logger name
        **kwargs: Additional arguments for UnifiedLogger
    """
    global _global_logger
    if _global_logger is None:
        _global_logger = UnifiedLogger(name, **kwargs)
    elif 'storage_callback' in kwargs:
        _global_logger.storage_callback = kwargs['storage_callback']
    return _global_logger


def setup_cli_logger(enable_colors: bool = True) -> UnifiedLogger:
    """Setup logger for CLI usage"""
    # Import here to avoid circular dependencies
    from quicktranslate.config import DEBUG_MODE

    logging.basicConfig(
        level=logging.DEBUG if DEBUG_MODE else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    return get_logger(
        console_output=True,
        enable_colors=enable_colors,
        min_level=LogLevel.DEBUG if DEBUG_MODE else LogLevel.INFO
    )
