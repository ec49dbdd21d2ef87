# smart_session/utils/environment.py
"""
Central environment detection and configuration access.
Provides unified access to the profile directory, config.json and SMART_* environment variables.
"""

import os
import sys
import json
from typing import Dict, Any, Optional, Union
from pathlib import Path


# Environment variables understood by the standalone service, mapped to config keys
ENVIRONMENT_CONFIG_KEYS = {
    'SMART_BASE_URL': 'base_url',
    'SMART_CLIENT_ID': 'client_id',
    'SMART_REDIRECT_URI': 'redirect_uri',
    'SMART_SCOPES': 'scopes',
    'SMART_DISCOVERY_URL': 'discovery_url',
    'SMART_REVOCATION_ENDPOINT': 'revocation_endpoint',
    'SMART_END_SESSION_ENDPOINT': 'end_session_endpoint',
    'SMART_POST_LOGOUT_REDIRECT': 'post_logout_redirect',
    'SMART_ENGINE_FACTORY': 'engine_factory',
}


class EnvironmentManager:
    """
    Central manager for environment detection and configuration.
    """

    _instance: Optional['EnvironmentManager'] = None

    def __new__(cls) -> 'EnvironmentManager':
        if cls._instance is None:
            cls._instance = super(EnvironmentManager, cls).__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self) -> None:
        if self._initialized:
            return

        self._initialized = True
        self._config: Dict[str, Any] = {}

        self._init_standalone()
        self._load_config()
        self._load_environment()

    @staticmethod
    def _log_init_error(message: str, error: Exception) -> None:
        """Log initialization errors (static method)"""
        # We can't use logger here yet, so print to stderr
        print(f"{message}: {error}", file=sys.stderr)

    def _init_standalone(self) -> None:
        """Initialize standalone mode components"""
        self._config['environment'] = 'standalone'
        self._config['app_name'] = 'SMART Session'
        self._config['app_version'] = '1.0.0'

        # Default configuration paths
        config_home = os.environ.get('XDG_CONFIG_HOME') or os.path.join(str(Path.home()), '.config')
        self._config['config_dir'] = os.environ.get('SMART_CONFIG_DIR') or os.path.join(config_home, 'smart-session')
        self._config['profile_path'] = self._config['config_dir']

        try:
            self._config['server_port'] = int(os.environ.get('SMART_SERVER_PORT', '8765'))
        except ValueError as port_error:
            self._log_init_error("Invalid server port, using default", port_error)
            self._config['server_port'] = 8765

        # Ensure config directory exists
        try:
            os.makedirs(self._config['config_dir'], exist_ok=True)
        except OSError as dir_error:
            self._log_init_error("Failed to create config directory", dir_error)
            # Use temp directory as fallback
            import tempfile
            self._config['config_dir'] = tempfile.mkdtemp(prefix='smart-session-')
            self._config['profile_path'] = self._config['config_dir']

    def _load_config(self) -> None:
        """Load additional configuration from config.json in the profile directory"""
        config_file = os.path.join(self._config['profile_path'], 'config.json')
        if os.path.exists(config_file):
            try:
                with open(config_file, 'r', encoding='utf-8') as f:
                    file_config = json.load(f)
                    for key, value in file_config.items():
                        if isinstance(value, (str, int, float, bool, type(None))):
                            self._config[key] = value
            except json.JSONDecodeError as json_error:
                self._log_init_error("Invalid JSON in config file", json_error)
            except OSError as io_error:
                self._log_init_error("Failed to read config file", io_error)

    def _load_environment(self) -> None:
        """SMART_* environment variables take precedence over config.json"""
        for env_name, config_key in ENVIRONMENT_CONFIG_KEYS.items():
            value = os.environ.get(env_name)
            if value and value.strip():
                self._config[config_key] = value.strip()

        debug = os.environ.get('SMART_DEBUG')
        if debug is not None:
            self._config['debug_mode'] = debug.lower() in ('1', 'true', 'yes')

    def get_config(self, key: str, default: Any = None) -> Any:
        """Get configuration value"""
        return self._config.get(key, default)

    def set_config(self, key: str, value: Union[str, int, float, bool, None], persist: bool = True) -> None:
        """Set configuration value, optionally writing it through to config.json"""
        self._config[key] = value

        if not persist:
            return

        config_file = os.path.join(self._config['profile_path'], 'config.json')
        try:
            existing_config = {}
            if os.path.exists(config_file):
                with open(config_file, 'r', encoding='utf-8') as f:
                    existing_config = json.load(f)

            existing_config[key] = value

            with open(config_file, 'w', encoding='utf-8') as f:
                json.dump(existing_config, f, indent=2, ensure_ascii=False)
        except OSError as save_error:
            self._log_init_error("Failed to save config", save_error)
        except (TypeError, ValueError) as type_error:
            self._log_init_error("Config contains non-serializable data", type_error)

    def get_service_config(self) -> Dict[str, Any]:
        """Get configuration for running the service"""
        return {
            'port': self._config.get('server_port', 8765),
            'debug_mode': self._config.get('debug_mode', False),
            'profile_path': self._config.get('profile_path', ''),
        }


# Global singleton instance
_env_manager: Optional[EnvironmentManager] = None


def get_environment_manager() -> EnvironmentManager:
    """Get the global environment manager instance"""
    global _env_manager
    if _env_manager is None:
        _env_manager = EnvironmentManager()
    return _env_manager
