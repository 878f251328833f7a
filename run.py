#!/usr/bin/env python3
import sys
import os
import logging
import signal
from pathlib import Path

# Add project root to Python path
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from app import create_app
from config.settings import compass_config, gps_config
from sensors.position_source import NMEAPositionSource, SerialNMEAReader


def setup_logging():
    """Setup logging configuration"""
    log_level = logging.DEBUG if os.getenv('FLASK_DEBUG', 'False').lower() == 'true' else logging.INFO

    handlers = [logging.StreamHandler(sys.stdout)]

    # Add file handler if enabled
    if os.getenv('LOG_TO_FILE', 'False').lower() == 'true':
        log_dir = PROJECT_ROOT / 'logs'
        log_dir.mkdir(exist_ok=True)
        file_handler = logging.FileHandler(log_dir / 'compass.log')
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))
        handlers.append(file_handler)

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )
    # Reduce noisy third-party loggers
    logging.getLogger('pynmea2').setLevel(logging.ERROR)
    logging.getLogger('werkzeug').setLevel(logging.WARNING)


def setup_signal_handlers(gps_reader):
    """Setup graceful shutdown signal handlers"""
    def signal_handler(signum, frame):
        logging.info(f"Received signal {signum}, shutting down gracefully...")

        if gps_reader is not None:
            logging.info("Stopping GPS reader...")
            gps_reader.stop()

        logging.info("Shutdown complete")
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)


def validate_environment():
    """Validate environment and configuration"""
    errors = []
    warnings = []

    if sys.version_info < (3, 8):
        errors.append(f"Python 3.8+ required, got {sys.version}")

    env_file = PROJECT_ROOT / '.env'
    if not env_file.exists():
        warnings.append(".env file not found - using defaults")

    storage_dir = os.path.dirname(os.path.abspath(compass_config["storage_path"]))
    if os.path.isdir(storage_dir) and not os.access(storage_dir, os.W_OK):
        errors.append(f"Storage directory {storage_dir} is not writable")

    if not gps_config["port"]:
        warnings.append("GPS_PORT not set - positions must be pushed over HTTP")

    if errors:
        for error in errors:
            logging.error(f"❌ {error}")
        logging.error("Cannot start application due to validation errors")
        sys.exit(1)

    if warnings:
        for warning in warnings:
            logging.warning(f"⚠️  {warning}")

    logging.info("✅ Environment validation passed")


def start_gps_reader(navigator):
    """Attach a serial NMEA receiver to the navigator when GPS_PORT is set"""
    if not gps_config["port"]:
        return None

    source = NMEAPositionSource(uere_meters=gps_config["uere_meters"])
    source.subscribe(navigator)
    reader = SerialNMEAReader(source, gps_config["port"],
                              baudrate=gps_config["baudrate"],
                              timeout=gps_config["timeout"])
    if not reader.start():
        logging.warning(f"GPS reader on {gps_config['port']} failed to start - continuing without it")
        return None
    return reader


def main():
    """Main application entry point"""
    setup_logging()

    logger = logging.getLogger(__name__)
    logger.info("Cast-a-point compass starting...")

    try:
        validate_environment()

        logger.info("🧭 Initializing compass...")
        app = create_app()

        gps_reader = start_gps_reader(app.extensions['compass_navigator'])
        setup_signal_handlers(gps_reader)

        host = os.getenv('FLASK_HOST', '0.0.0.0')
        port = int(os.getenv('FLASK_PORT', '5002'))
        debug = os.getenv('FLASK_DEBUG', 'False').lower() == 'true'

        logger.info("🌐 Web interface configuration:")
        logger.info(f"   Host: {host}")
        logger.info(f"   Port: {port}")
        logger.info(f"   Debug: {debug}")
        logger.info(f"   URLs: http://{host}:{port}")
        if host == '0.0.0.0':
            logger.info(f"         http://localhost:{port}")

        logger.info("🚀 Starting Flask development server...")
        app.run(
            host=host,
            port=port,
            debug=debug,
            threaded=True,
            use_reloader=False  # Reloader would start a second GPS reader
        )

    except KeyboardInterrupt:
        logger.info("Application interrupted by user")
    except Exception as e:
        logger.error(f"Failed to start application: {e}", exc_info=True)
        sys.exit(1)


if __name__ == '__main__':
    main()
