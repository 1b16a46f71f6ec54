"""
Modules and the module registry.

A module is registered first and initialized later, once every module of
the bootstrap phase is known, so its ``init`` may look up other modules.
"""

from types import MappingProxyType
from typing import TYPE_CHECKING, Dict, List, Mapping, Optional

from ..utils.logging import logger

if TYPE_CHECKING:
    from ..engine import IvyEngine


class Module:
    """Base class for engine modules."""
    
    def __init__(self, name: str, engine: "IvyEngine") -> None:
        self.name = name
        self.engine = engine
    
    def init(self) -> None:
        """Initialization hook, called once after registration completes."""


class EventManager(Module):
    """Base class for the module that wires Discord events to the engine."""
    
    def __init__(self, engine: "IvyEngine", name: str = "Events") -> None:
        super().__init__(name, engine)


class ModuleManager:
    """Name-keyed, insertion-ordered registry of modules."""
    
    def __init__(self, engine: "IvyEngine") -> None:
        self.engine = engine
        self._modules: Dict[str, Module] = {}
        self._initialized: List[str] = []
    
    def register_module(self, module: Module) -> None:
        """Register a module, replacing any module registered under the same name."""
        if module.name in self._modules:
            logger.warning(f"Module '{module.name}' registered twice, replacing previous instance")
            if module.name in self._initialized:
                self._initialized.remove(module.name)
        self._modules[module.name] = module
    
    def get_module(self, name: str) -> Optional[Module]:
        return self._modules.get(name)
    
    @property
    def modules(self) -> Mapping[str, Module]:
        """Read-only view of the registered modules."""
        return MappingProxyType(self._modules)
    
    def is_initialized(self, name: str) -> bool:
        return name in self._initialized
    
    def init(self) -> None:
        """Initialize every registered module that has not been initialized yet.
        
        Modules are initialized in registration order. Errors propagate.
        """
        for name, module in list(self._modules.items()):
            if name in self._initialized:
                continue
            module.init()
            self._initialized.append(name)
            logger.debug(f"Initialized module '{name}'")
