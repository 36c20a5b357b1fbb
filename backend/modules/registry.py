"""
Built-in module registry: first-party functions shipped with the engine.

Each module file exposes ``MODULE`` (its name inside the category) and
``FUNCTIONS``, a mapping of catalog function name to registration options.
"""

from modules.utilities import (
    array_utils,
    datetime_utils,
    http_client,
    json_transform,
    string_utils,
)

BUILTIN_MODULES = {
    "utilities": [datetime_utils, string_utils, array_utils, json_transform, http_client],
}


def register_builtin_modules(catalog) -> None:
    """Register every built-in module function into ``catalog``."""
    for category, modules in BUILTIN_MODULES.items():
        for module in modules:
            for name, options in module.FUNCTIONS.items():
                options = dict(options)
                func = options.pop("func")
                catalog.register(category, module.MODULE, name, func, **options)
