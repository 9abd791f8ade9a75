"""
Action Loader - Populate the registry from self-registering modules.

Every module in homebot.commands and homebot.webhooks exposes:

    def register(registry: ActionRegistry) -> None: ...

The loader imports each one and calls it. Modules whose name starts with
"_" or "template" are skipped. A module that fails to import or register
is logged and skipped; the rest still load.
"""

import importlib
import logging
import pkgutil
from typing import Iterable, List, Optional

from homebot.ai.actions.registry import ActionRegistry, action_registry

logger = logging.getLogger("homebot.ai.actions.loader")

DEFAULT_PACKAGES = ("homebot.commands", "homebot.webhooks")


def load_actions(
    registry: Optional[ActionRegistry] = None,
    packages: Iterable[str] = DEFAULT_PACKAGES,
) -> List[str]:
    """
    Import every action module in `packages` and let it register itself.

    Returns:
        Fully qualified names of the modules that registered successfully
    """
    registry = registry if registry is not None else action_registry
    loaded: List[str] = []

    for package_name in packages:
        try:
            package = importlib.import_module(package_name)
        except ImportError as e:
            logger.error(f"Cannot import action package {package_name}: {e}")
            continue

        for module_info in pkgutil.iter_modules(package.__path__):
            name = module_info.name
            if name.startswith("_") or name.startswith("template"):
                continue

            module_name = f"{package_name}.{name}"
            try:
                module = importlib.import_module(module_name)
                register = getattr(module, "register", None)
                if not callable(register):
                    logger.warning(f"Module {module_name} does not define register(registry)")
                    continue
                register(registry)
            except Exception as e:
                logger.error(f"Error loading actions from {module_name}: {e}", exc_info=True)
                continue

            loaded.append(module_name)

    logger.info(f"Loaded {len(loaded)} action modules, {len(registry)} actions registered")
    return loaded
