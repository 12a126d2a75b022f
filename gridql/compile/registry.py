"""Dialect name → :class:`~gridql.compile.base.SQLCompiler` lookup.

``gridql/__init__.py`` registers the built-in strategies under SQLAlchemy's
dialect names; :class:`~gridql.grid.DataGrid` picks one from
``bind.dialect.name``.  Another backend is added with::

    CompilerFactory.register_class("mssql", MSSQLCompiler)
"""

from __future__ import annotations

from typing import ClassVar

from gridql.compile.base import SQLCompiler
from gridql.errors import CompilationError


class CompilerFactory:
    """Process-wide table of dialect strategies."""

    _compilers: ClassVar[dict[str, type[SQLCompiler]]] = {}

    @classmethod
    def register_class(cls, name: str, compiler_cls: type[SQLCompiler]) -> None:
        cls._compilers[name] = compiler_cls

    @classmethod
    def create(cls, name: str) -> SQLCompiler:
        """Return a fresh strategy for dialect ``name``.

        Raises:
            CompilationError: If nothing is registered under ``name``.
        """
        try:
            compiler_cls = cls._compilers[name]
        except KeyError:
            known = ", ".join(sorted(cls._compilers))
            raise CompilationError(
                f"No SQL compiler for dialect '{name}' (known: {known})."
            ) from None
        return compiler_cls()
