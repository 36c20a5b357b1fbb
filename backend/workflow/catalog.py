"""
Module Catalog: registry of every operation a workflow step can call.

Steps address operations by a dotted ``category.module.function`` path
(``utilities.string-utils.capitalize``). Each registered operation carries a
descriptor that states its calling convention explicitly, so dispatch never
has to guess how to pass a step's named inputs.
"""

import collections.abc
import inspect
import typing
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

import structlog

from core.exceptions import (
    ConflictError,
    InvalidModulePathError,
    ModuleFunctionNotFoundError,
)

logger = structlog.get_logger(__name__)


class ParameterStyle(str, Enum):
    """How a step's named inputs are handed to the operation."""

    NONE = "none"                    # fn()
    SINGLE_OBJECT = "single_object"  # fn(inputs)
    SINGLE_SCALAR = "single_scalar"  # fn(value)
    POSITIONAL = "positional"        # fn(a, b, c) bound by parameter name


# Lookup key -> storage key. Lookup keys are lower-case; the category segment
# of a module path may be a display name ("Social Media") or a storage key.
CATEGORY_ALIASES: dict[str, str] = {
    "communication": "communication",
    "social media": "social",
    "social": "social",
    "ai": "ai",
    "data": "data",
    "utilities": "utilities",
    "payments": "payments",
    "productivity": "productivity",
    "business": "business",
    "content": "content",
    "data processing": "dataprocessing",
    "dataprocessing": "dataprocessing",
    "developer tools": "devtools",
    "dev tools": "devtools",
    "devtools": "devtools",
    "e-commerce": "ecommerce",
    "ecommerce": "ecommerce",
    "lead generation": "leads",
    "leads": "leads",
    "video automation": "video",
    "video": "video",
    "external apis": "external-apis",
    "external-apis": "external-apis",
}

# Storage key -> display name, for generated documentation
CATEGORY_DISPLAY_NAMES: dict[str, str] = {
    "communication": "Communication",
    "social": "Social Media",
    "data": "Data",
    "ai": "AI",
    "utilities": "Utilities",
    "payments": "Payments",
    "productivity": "Productivity",
    "dataprocessing": "Data Processing",
    "video": "Video Automation",
    "business": "Business",
    "leads": "Lead Generation",
    "ecommerce": "E-Commerce",
    "content": "Content",
    "devtools": "Developer Tools",
    "external-apis": "External APIs",
}


def normalize_category(name: str) -> Optional[str]:
    """Map a category display name or alias to its storage key."""
    return CATEGORY_ALIASES.get(" ".join(name.split()).lower())


def parse_module_path(module_path: str) -> tuple[str, str, str]:
    """Split a module path into (category, module, function).

    The category may span two dot segments (``social.media.reddit.getPosts``)
    when those two words form a known display name; otherwise it is the
    first segment.

    Raises:
        InvalidModulePathError: If no known category matches or a segment is missing.
    """
    if not isinstance(module_path, str):
        raise InvalidModulePathError(str(module_path))

    parts = [part.strip() for part in module_path.split(".")]

    if len(parts) == 4:
        category = normalize_category(f"{parts[0]} {parts[1]}")
        if category and parts[2] and parts[3]:
            return category, parts[2], parts[3]

    if len(parts) == 3:
        category = normalize_category(parts[0])
        if category and parts[1] and parts[2]:
            return category, parts[1], parts[2]

    raise InvalidModulePathError(module_path)


@dataclass
class ModuleDescriptor:
    """A registered operation and its calling convention."""

    category: str
    module: str
    name: str
    invoke: Callable[..., Any]
    parameter_style: ParameterStyle
    parameter_names: list[str] = field(default_factory=list)
    required_parameters: list[str] = field(default_factory=list)
    description: str = ""

    @property
    def path(self) -> str:
        return f"{self.category}.{self.module}.{self.name}"

    @property
    def signature(self) -> str:
        params = [
            name if name in self.required_parameters else f"{name}?"
            for name in self.parameter_names
        ]
        if self.parameter_style == ParameterStyle.SINGLE_OBJECT:
            return f"{self.name}({{ ... }})"
        return f"{self.name}({', '.join(params)})"

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "category": self.category,
            "module": self.module,
            "function": self.name,
            "parameter_style": self.parameter_style.value,
            "parameters": self.parameter_names,
            "required": self.required_parameters,
            "signature": self.signature,
            "description": self.description,
        }


def _is_mapping_annotation(annotation: Any) -> bool:
    if annotation is inspect.Parameter.empty:
        return False
    origin = typing.get_origin(annotation) or annotation
    if origin in (dict, collections.abc.Mapping, collections.abc.MutableMapping):
        return True
    # TypedDict classes
    return isinstance(annotation, type) and issubclass(annotation, dict)


def describe_callable(func: Callable[..., Any]) -> tuple[ParameterStyle, list[str], list[str]]:
    """Derive (style, parameter names, required names) from a function signature.

    Runs once, at registration time.
    """
    signature = inspect.signature(func)
    try:
        hints = typing.get_type_hints(func)
    except Exception:
        hints = {}

    params = [
        p for p in signature.parameters.values()
        if p.kind not in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)
    ]
    names = [p.name for p in params]
    required = [p.name for p in params if p.default is inspect.Parameter.empty]

    if not params:
        return ParameterStyle.NONE, names, required
    if len(params) == 1:
        annotation = hints.get(params[0].name, params[0].annotation)
        if _is_mapping_annotation(annotation):
            return ParameterStyle.SINGLE_OBJECT, names, required
        return ParameterStyle.SINGLE_SCALAR, names, required
    return ParameterStyle.POSITIONAL, names, required


class ModuleCatalog:
    """Central registry of callable module functions."""

    def __init__(self):
        self._functions: dict[tuple[str, str, str], ModuleDescriptor] = {}

    def register(
        self,
        category: str,
        module: str,
        name: str,
        func: Callable[..., Any],
        parameter_names: Optional[list[str]] = None,
        parameter_style: Optional[ParameterStyle] = None,
        required_parameters: Optional[list[str]] = None,
        description: str = "",
    ) -> ModuleDescriptor:
        """Register an operation under ``category.module.name``.

        Parameter names and style default to what the function signature
        declares; pass them explicitly to override.

        Raises:
            InvalidModulePathError: If the category is unknown.
            ConflictError: If the path is already registered.
        """
        storage_category = normalize_category(category)
        if storage_category is None:
            raise InvalidModulePathError(f"{category}.{module}.{name}")

        style, names, required = describe_callable(func)
        if parameter_names is not None:
            names = list(parameter_names)
            required = list(required_parameters) if required_parameters is not None else list(names)
        elif required_parameters is not None:
            required = list(required_parameters)
        if parameter_style is not None:
            style = ParameterStyle(parameter_style)

        descriptor = ModuleDescriptor(
            category=storage_category,
            module=module,
            name=name,
            invoke=func,
            parameter_style=style,
            parameter_names=names,
            required_parameters=required,
            description=description or (inspect.getdoc(func) or "").split("\n")[0],
        )

        key = (storage_category, module, name)
        if key in self._functions:
            raise ConflictError(f"Module function already registered: {descriptor.path}")
        self._functions[key] = descriptor
        return descriptor

    def function(
        self,
        category: str,
        module: str,
        name: Optional[str] = None,
        **options: Any,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Decorator form of :meth:`register`."""

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self.register(category, module, name or func.__name__, func, **options)
            return func

        return decorator

    def get(self, category: str, module: str, name: str) -> ModuleDescriptor:
        """Look up a registered operation.

        Raises:
            ModuleFunctionNotFoundError: If nothing is registered under the triple.
        """
        storage_category = normalize_category(category) or category
        descriptor = self._functions.get((storage_category, module, name))
        if descriptor is None:
            path = f"{storage_category}.{module}.{name}"
            if not any(c == storage_category and m == module for c, m, _ in self._functions):
                raise ModuleFunctionNotFoundError(path, f"module {storage_category}/{module} not found")
            raise ModuleFunctionNotFoundError(
                path, f"function {name} not found in module {storage_category}/{module}"
            )
        return descriptor

    def resolve(self, module_path: str) -> ModuleDescriptor:
        """Parse a module path and return its descriptor."""
        return self.get(*parse_module_path(module_path))

    def has(self, module_path: str) -> bool:
        """Whether a module path resolves to a registered operation."""
        try:
            self.resolve(module_path)
        except (InvalidModulePathError, ModuleFunctionNotFoundError):
            return False
        return True

    def list_all(self) -> list[dict]:
        """List all registered operations with metadata."""
        return [d.to_dict() for d in sorted(self._functions.values(), key=lambda d: d.path)]

    def __len__(self) -> int:
        return len(self._functions)

    def generate_module_docs(self) -> str:
        """Render the catalog as markdown for workflow authoring tools."""
        lines = [
            "# Available Workflow Modules",
            "",
            "Each function takes inputs and returns outputs that can be used in "
            "subsequent steps via `{{outputAs}}` references.",
            "",
            "## Module Path Format",
            "All module paths use `category.module.function`.",
            "",
            "**Category Mappings:**",
        ]
        for key, display in CATEGORY_DISPLAY_NAMES.items():
            lines.append(f"- {display} → `{key}`")
        lines.append("")

        by_category: dict[str, dict[str, list[ModuleDescriptor]]] = {}
        for descriptor in sorted(self._functions.values(), key=lambda d: d.path):
            by_category.setdefault(descriptor.category, {}).setdefault(
                descriptor.module, []
            ).append(descriptor)

        for category, modules in by_category.items():
            display = CATEGORY_DISPLAY_NAMES.get(category, category)
            lines.append(f"## {display} (category: `{category}`)")
            lines.append("")
            for module, descriptors in modules.items():
                lines.append(f"### {module}")
                lines.append("")
                for d in descriptors:
                    lines.append(f"**{d.name}** → `{d.path}`")
                    if d.description:
                        lines.append(f"- {d.description}")
                    lines.append(f"- Signature: `{d.signature}`")
                    lines.append("")

        docs = "\n".join(lines)
        logger.debug("Module documentation generated", doc_length=len(docs))
        return docs


# Singleton
_catalog: Optional[ModuleCatalog] = None


def get_module_catalog() -> ModuleCatalog:
    """Get or create the process-wide catalog with built-in modules registered."""
    global _catalog
    if _catalog is None:
        from modules.registry import register_builtin_modules

        _catalog = ModuleCatalog()
        register_builtin_modules(_catalog)
    return _catalog


def validate_module_path(module_path: str, catalog: Optional[ModuleCatalog] = None) -> bool:
    """Whether ``module_path`` names a registered function."""
    return (catalog or get_module_catalog()).has(module_path)
