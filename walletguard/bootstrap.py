"""
Composition root for the WalletGuard core.

Builds the store, signer and reporter from configured backends, wires them into
a ``SecurityPolicyEngine`` and ``SessionAuthenticator``, and registers every
component in a bevy container keyed by its interface.
"""

import importlib
import logging
from typing import Any, TypeVar

from bevy import Container, get_registry

from .config.schema import BackendConfig, WalletGuardConfig
from .emitter import EventEmitter
from .exceptions import ConfigurationError
from .protocols import SecureStore, WalletSigner
from .reporting import ErrorReporter
from .security.engine import SecurityPolicyEngine
from .session.authenticator import SessionAuthenticator
from .tokens import SessionTokenService
from .utils import Clock, now_ms

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BackendLoader:
    """Loads backend classes from module paths."""

    @staticmethod
    def load_class(module_path: str) -> type:
        """
        Load a class from a module path like 'module.path:ClassName'.

        Raises:
            ConfigurationError: If the module or class cannot be loaded
        """
        if ":" not in module_path:
            raise ConfigurationError(
                f"Invalid module path format: {module_path}. Expected 'module:class'"
            )

        module_name, class_name = module_path.rsplit(":", 1)
        try:
            module = importlib.import_module(module_name)
        except ImportError as e:
            raise ConfigurationError(
                f"Could not import module '{module_name}': {e}"
            ) from e

        try:
            return getattr(module, class_name)
        except AttributeError as e:
            raise ConfigurationError(
                f"Class '{class_name}' not found in module '{module_name}'"
            ) from e

    def create(self, config: BackendConfig, interface: type[T]) -> T:
        """Instantiate a configured backend, checking it implements ``interface``."""
        cls = self.load_class(config.backend)
        if not isinstance(cls, type) or not issubclass(cls, interface):
            raise ConfigurationError(f"Class {cls} is not a {interface.__name__}")

        try:
            return cls(**config.options)
        except TypeError as e:
            raise ConfigurationError(
                f"Invalid options for {config.backend}: {e}"
            ) from e


class WalletGuardBootstrap:
    """
    Assembles the authentication core from configuration.

    Explicitly passed collaborators override the configured backends, which is
    how an application plugs in its platform keychain and wallet connector.

    Examples:
        ```python
        config = WalletGuardConfigLoader.load()
        bootstrap = WalletGuardBootstrap(config, store=keychain_store)
        await bootstrap.initialize()

        auth = bootstrap.container.get(SessionAuthenticator)
        ```
    """

    def __init__(
        self,
        config: WalletGuardConfig | None = None,
        *,
        store: SecureStore | None = None,
        signer: WalletSigner | None = None,
        reporter: ErrorReporter | None = None,
        clock: Clock = now_ms,
        container: Container | None = None,
    ):
        self.config = config or WalletGuardConfig()
        self.container = container or get_registry().create_container()
        self._loader = BackendLoader()

        backends = self.config.backends
        if store is None:
            store = self._loader.create(backends.store, SecureStore)
        if signer is None:
            signer = self._loader.create(backends.signer, WalletSigner)
        if reporter is None:
            reporter = self._loader.create(backends.reporter, ErrorReporter)
        self.store = store
        self.signer = signer
        self.reporter = reporter

        # One emitter so listeners see auth and security events in order
        self.emitter = EventEmitter()
        self.tokens = SessionTokenService(self.config.session)
        self.security = SecurityPolicyEngine(
            self.store, self.config.security, clock=clock, emitter=self.emitter
        )
        self.authenticator = SessionAuthenticator(
            self.signer,
            self.store,
            self.security,
            self.config.session,
            token_service=self.tokens,
            reporter=self.reporter,
            clock=clock,
            emitter=self.emitter,
        )

        self._register()
        self._initialized = False

    def _register(self) -> None:
        components: dict[type, Any] = {
            WalletGuardConfig: self.config,
            SecureStore: self.store,
            WalletSigner: self.signer,
            ErrorReporter: self.reporter,
            EventEmitter: self.emitter,
            SessionTokenService: self.tokens,
            SecurityPolicyEngine: self.security,
            SessionAuthenticator: self.authenticator,
        }
        for interface, component in components.items():
            self.container.add(interface, component)
            logger.debug(f"Registered {interface.__name__}: {type(component).__name__}")

    async def initialize(self) -> bool:
        """
        Load persisted security and session state.

        Returns:
            False if the stored session was unreadable, True otherwise
        """
        if self._initialized:
            logger.warning("WalletGuard already initialized, skipping")
            return True

        await self.security.initialize()
        restored = await self.authenticator.initialize()
        self._initialized = True
        logger.info("WalletGuard initialized")
        return restored
