"""
Module Dispatcher: invokes a catalog operation with a step's resolved inputs.

Inputs are always a named map; the descriptor's parameter style decides how
they are passed. Positional binding is strictly by parameter name: a named
input is never matched to a parameter by its position in the map.
"""

import inspect
import time
from typing import Any, Optional

import structlog

from core.exceptions import (
    InvalidModulePathError,
    ModuleFunctionNotFoundError,
    OperationError,
    ParameterMismatchError,
    error_message,
)
from workflow.catalog import ModuleCatalog, ModuleDescriptor, ParameterStyle, get_module_catalog

logger = structlog.get_logger(__name__)


def bind_arguments(descriptor: ModuleDescriptor, inputs: dict[str, Any]) -> list[Any]:
    """Turn a named input map into the positional arguments for ``descriptor``.

    Raises:
        ParameterMismatchError: If the inputs cannot be bound unambiguously.
    """
    provided = list(inputs.keys())
    expected = descriptor.parameter_names
    style = descriptor.parameter_style

    if not inputs:
        if not descriptor.required_parameters:
            return []
        if style == ParameterStyle.SINGLE_OBJECT:
            return [{}]
        raise ParameterMismatchError(descriptor.path, expected, provided)

    if style == ParameterStyle.NONE:
        raise ParameterMismatchError(descriptor.path, expected, provided)

    if style == ParameterStyle.SINGLE_OBJECT:
        return [dict(inputs)]

    if style == ParameterStyle.SINGLE_SCALAR:
        if len(inputs) != 1:
            raise ParameterMismatchError(descriptor.path, expected, provided)
        return [next(iter(inputs.values()))]

    # POSITIONAL
    unknown = [key for key in provided if key not in expected]
    missing = [name for name in descriptor.required_parameters if name not in inputs]
    if unknown or missing:
        raise ParameterMismatchError(descriptor.path, expected, provided)

    args: list[Any] = []
    omitted = False
    for name in expected:
        if name in inputs:
            if omitted:
                # A supplied parameter after an omitted one cannot be passed positionally
                raise ParameterMismatchError(descriptor.path, expected, provided)
            args.append(inputs[name])
        else:
            omitted = True
    return args


class ModuleDispatcher:
    """Resolves module paths against a catalog and invokes the operation."""

    def __init__(self, catalog: Optional[ModuleCatalog] = None):
        self.catalog = catalog or get_module_catalog()

    async def dispatch(self, module_path: str, inputs: Optional[dict[str, Any]] = None) -> Any:
        """Invoke the operation at ``module_path`` with ``inputs``.

        Args:
            module_path: ``category.module.function``
            inputs: Resolved step inputs

        Returns:
            Whatever the operation returns (awaited if it is a coroutine).

        Raises:
            InvalidModulePathError: Unknown category or malformed path.
            ModuleFunctionNotFoundError: Nothing registered under the path.
            ParameterMismatchError: Inputs do not fit the parameter list.
            OperationError: The operation itself raised.
        """
        descriptor = self.catalog.resolve(module_path)
        args = bind_arguments(descriptor, inputs or {})

        start = time.monotonic()
        try:
            result = descriptor.invoke(*args)
            if inspect.isawaitable(result):
                result = await result
        except (
            InvalidModulePathError,
            ModuleFunctionNotFoundError,
            ParameterMismatchError,
            OperationError,
        ):
            raise
        except Exception as e:
            logger.warning(
                "Module function failed",
                module_path=descriptor.path,
                error=error_message(e),
                duration_ms=int((time.monotonic() - start) * 1000),
            )
            raise OperationError(descriptor.path, error_message(e)) from e

        logger.debug(
            "Module function completed",
            module_path=descriptor.path,
            duration_ms=int((time.monotonic() - start) * 1000),
        )
        return result
