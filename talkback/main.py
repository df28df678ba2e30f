"""Main application entry point for Talkback."""

import sys
import asyncio
import argparse
import logging
from pathlib import Path
from typing import Optional

from . import __version__
from .config import TalkbackConfig
from .errors import MissingCredential
from .pipeline import PipelineOrchestrator, PipelinePublisher
from .ui import VoiceScreen

logger = logging.getLogger(__name__)


class Server:
    """Wires configuration, orchestrator and terminal UI together."""

    def __init__(self, config_path: Optional[str], log_level: Optional[str] = None):
        # Load configuration
        self.config = TalkbackConfig(config_path)
        # Set up logging (command line overrides config)
        level = log_level or self.config.get('logging.level', 'INFO')
        setup_logging(self.config, level)
        self.publisher = PipelinePublisher()
        self.orchestrator: Optional[PipelineOrchestrator] = None

    def init(self) -> None:
        logger.info("Initializing services...")
        self.orchestrator = PipelineOrchestrator.from_config(
            self.config,
            **self.publisher.get_callbacks()
        )
        logger.info(f"Models: transcription={self.config.get('transcription.model')}, "
                    f"completion={self.config.get('completion.model')}, "
                    f"synthesis={self.config.get('synthesis.model')}/{self.config.get('synthesis.voice')}")

    async def run(self) -> None:
        screen = VoiceScreen(self.orchestrator, self.publisher)
        await screen.run()


def setup_logging(config: TalkbackConfig, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get('logging.file_path', 'data/logs/talkback.log')
    console_output = config.get('logging.console_output', False)
    
    # Create logs directory if it doesn't exist
    log_dir = Path(log_file_path).parent
    log_dir.mkdir(parents=True, exist_ok=True)
    
    handlers = []
    
    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    )
    file_handler.setFormatter(file_formatter)
    handlers.append(file_handler)
    
    # Console handler - only if enabled in config
    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.WARNING)  # Only show warnings and above on console
        console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        handlers.append(console_handler)
    
    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)
    
    logger.info("=" * 50)
    logger.info("Talkback starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Talkback - speak a request, hear the answer",
        epilog="Keys: space/enter = start/stop recording, q = quit"
    )
    
    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: built-in defaults)"
    )
    
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (overrides logging.level in the config)"
    )
    
    parser.add_argument(
        "--version",
        action="version",
        version=f"Talkback v{__version__}"
    )
    return parser


def main() -> None:
    """Main entry point for Talkback application."""
    args = build_parser().parse_args()

    try:
        server = Server(args.config, args.log_level)
        server.init()
        asyncio.run(server.run())
    except KeyboardInterrupt:
        print("\nGoodbye!")
    except MissingCredential as e:
        print(f"Error: {e}")
        sys.exit(2)
    except Exception as e:
        print(f"Error: {e}")
        logger.error(f"Application error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
