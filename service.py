#!/usr/bin/env python3
import os
import sys

from bottle import Bottle, run

# Add lib path for imports
script_dir = os.path.dirname(os.path.abspath(__file__))
LIB_PATH = os.path.join(script_dir, 'lib')
if os.path.exists(LIB_PATH):
    sys.path.insert(0, LIB_PATH)

try:
    from smart_session import get_configured_manager
    from smart_session.utils import logger
    from smart_session.utils.environment import get_environment_manager
    from routes import setup_session_routes
except ImportError as import_err:
    print(f"SMART Session: Critical import failed - {str(import_err)}", file=sys.stderr)
    raise


class SmartSessionService:
    def __init__(self, config_dir: str = None, manager=None):
        self.app = Bottle()

        # Get environment manager
        self.env_manager = get_environment_manager()

        # Override config directory if provided
        if config_dir:
            self.env_manager.set_config('profile_path', config_dir, persist=False)

        service_config = self.env_manager.get_service_config()
        self.server_port = service_config['port']
        self.debug_mode = service_config['debug_mode']

        # Initialize manager
        try:
            self.manager = manager or get_configured_manager()
            logger.info("Session manager initialized successfully")
        except Exception as init_err:
            logger.error(f"Failed to initialize session manager - {str(init_err)}")
            raise

        self.setup_routes()

    def setup_routes(self):
        setup_session_routes(self.app, self.manager)

        @self.app.route('/api/health')
        def health():
            return {'status': 'ok', 'state': self.manager.state.value}

    def restore(self):
        """Pick up a token persisted by a previous run"""
        restored = self.manager.restore_session().result(timeout=10)
        if restored:
            logger.info("Restored persisted session")

    def close(self):
        self.manager.close()


def start_service(service_instance):
    """Start the Bottle server"""
    port = service_instance.server_port
    logger.info(f"Starting server on port {port}")

    debug_mode = service_instance.debug_mode

    run(service_instance.app, host='0.0.0.0', port=port, quiet=not debug_mode, debug=debug_mode)


def run_standalone_service(config_dir: str = None):
    """Run service in standalone mode"""
    logger.info("Starting SMART Session service in standalone mode")

    service = SmartSessionService(config_dir=config_dir)
    service.restore()

    config = service.manager.config

    # Print startup information
    print("=" * 60)
    print("SMART Session Service")
    print("=" * 60)
    print(f"Port: {service.server_port}")
    print(f"FHIR Base URL: {config.base_url}")
    print(f"Client ID: {config.client_id}")
    print(f"Redirect URI: {config.redirect_uri}")
    print(f"Config Directory: {service.env_manager.get_config('profile_path', 'N/A')}")
    print("=" * 60)
    print("API Endpoints:")
    print(f"  http://localhost:{service.server_port}/api/session")
    print(f"  http://localhost:{service.server_port}/api/session/authorize")
    print(f"  http://localhost:{service.server_port}/api/session/logout")
    print("=" * 60)
    print("Press Ctrl+C to stop the service")
    print("=" * 60)

    try:
        start_service(service)
    except KeyboardInterrupt:
        print("\nService stopped by user")
    except Exception as e:
        print(f"Error running service: {e}")
        sys.exit(1)
    finally:
        service.close()


if __name__ == '__main__':
    import argparse

    parser = argparse.ArgumentParser(description='SMART-on-FHIR Session Service')
    parser.add_argument('--port', type=int, help='Server port (overrides config)')
    parser.add_argument('--config-dir', help='Configuration directory')
    parser.add_argument('--debug', action='store_true', help='Enable debug mode')

    args = parser.parse_args()

    # Get environment manager
    env_manager = get_environment_manager()

    # Apply CLI overrides
    if args.port:
        env_manager.set_config('server_port', args.port, persist=False)
        logger.info(f"Port overridden via CLI: {args.port}")

    if args.debug:
        env_manager.set_config('debug_mode', True, persist=False)
        logger.info("Debug mode enabled via CLI")

    run_standalone_service(config_dir=args.config_dir)
