# lib/smart_session/__init__.py
import importlib
from typing import Callable, Optional

from .auth import (
    ConfigurationError,
    FileTokenStore,
    ProtocolEngine,
    SessionLifecycleManager,
    TokenStore,
)
from .models import SmartConfig, Session, SessionState
from .utils.environment import get_environment_manager
from .utils.logger import logger

__version__ = "1.0.0"


def load_engine_factory(path: str) -> Callable[[], ProtocolEngine]:
    """
    Resolve a protocol engine factory from a "package.module:callable" path

    Raises:
        ConfigurationError: If the path is malformed or cannot be imported
    """
    module_name, _, attribute = path.partition(':')
    if not module_name or not attribute:
        raise ConfigurationError(f"Engine factory must look like 'package.module:callable', got '{path}'")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"Cannot import engine factory module '{module_name}': {e}") from e

    factory = getattr(module, attribute, None)
    if not callable(factory):
        raise ConfigurationError(f"Engine factory '{path}' is not callable")

    logger.debug(f"Loaded protocol engine factory {path}")
    return factory


def get_configured_manager(engine_factory: Optional[Callable[[], ProtocolEngine]] = None,
                           config: Optional[SmartConfig] = None,
                           token_store: Optional[TokenStore] = None,
                           **kwargs) -> SessionLifecycleManager:
    """
    Build a SessionLifecycleManager from config.json and SMART_* environment variables

    Args:
        engine_factory: Protocol engine factory; falls back to the configured engine_factory path
        config: Explicit configuration instead of the environment
        token_store: Credential store; defaults to a FileTokenStore in the profile directory
        **kwargs: Passed through to SessionLifecycleManager

    Raises:
        ConfigurationError: If required settings or the engine factory are missing
    """
    env_manager = get_environment_manager()
    config = config or SmartConfig.from_environment(env_manager)

    missing = config.missing_fields()
    if missing:
        raise ConfigurationError(f"Missing required configuration: {', '.join(missing)}")

    if engine_factory is None:
        factory_path = env_manager.get_config('engine_factory')
        if not factory_path:
            raise ConfigurationError("No protocol engine configured (set SMART_ENGINE_FACTORY)")
        engine_factory = load_engine_factory(factory_path)

    if token_store is None:
        token_store = FileTokenStore(
            config_dir=env_manager.get_config('profile_path'),
            namespace=config.client_id,
        )

    return SessionLifecycleManager(config, engine_factory, token_store, **kwargs)


__all__ = [
    'SessionLifecycleManager',
    'SmartConfig',
    'Session',
    'SessionState',
    'get_configured_manager',
    'load_engine_factory',
    '__version__',
]
