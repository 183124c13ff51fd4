"""
Naming utilities for safe code generation.

Handles identifier sanitization, case conversion, and keyword
conflicts for the TypeScript and Prisma sources the backends emit.
"""

import re
from typing import Set, Dict
from enum import Enum


class NamingCase(Enum):
    """Different naming case styles."""
    ORIGINAL = "original"     # userName stays userName
    SNAKE_CASE = "snake"      # user_name
    CAMEL_CASE = "camel"      # userName
    PASCAL_CASE = "pascal"    # UserName


def parse_naming_case(value: str) -> NamingCase:
    """Parse a case name such as 'snake' or 'original'."""
    try:
        return NamingCase(str(value).lower())
    except ValueError:
        valid = ", ".join(c.value for c in NamingCase)
        raise ValueError(f"Unknown naming case '{value}'. Valid cases: {valid}")


def to_snake_case(name: str) -> str:
    """Convert to snake_case."""
    name = name.replace('-', '_')
    # Split acronyms followed by words: HTTPServer -> HTTP_Server
    name = re.sub(r'([A-Z]+)([A-Z][a-z])', r'\1_\2', name)
    name = re.sub(r'([a-z0-9])([A-Z])', r'\1_\2', name)
    name = re.sub(r'_+', '_', name.lower())
    return name.strip('_')


def to_camel_case(name: str) -> str:
    """Convert to camelCase."""
    parts = to_snake_case(name).split('_')
    if not parts:
        return name
    return parts[0] + ''.join(part.capitalize() for part in parts[1:])


def to_pascal_case(name: str) -> str:
    """Convert to PascalCase."""
    return ''.join(part.capitalize() for part in to_snake_case(name).split('_') if part)


def capitalize(name: str) -> str:
    """Upper-case the first character only."""
    return name[:1].upper() + name[1:]


def convert_case(name: str, target_case: NamingCase) -> str:
    """Convert name to target case style."""
    if target_case == NamingCase.SNAKE_CASE:
        return to_snake_case(name)
    elif target_case == NamingCase.CAMEL_CASE:
        return to_camel_case(name)
    elif target_case == NamingCase.PASCAL_CASE:
        return to_pascal_case(name)
    return name


class NameSanitizer:
    """Handles name sanitization and case conversion."""

    def __init__(self, reserved_words: Set[str] = None, builtin_types: Set[str] = None):
        """
        Initialize name sanitizer.

        Args:
            reserved_words: Set of language reserved words
            builtin_types: Set of builtin type names that might conflict
        """
        self.reserved_words = reserved_words or set()
        self.builtin_types = builtin_types or set()
        self._name_cache: Dict[str, str] = {}
        self._used_names: Set[str] = set()

    def sanitize_name(self, name: str, target_case: NamingCase = NamingCase.ORIGINAL,
                      suffix_on_conflict: str = "_") -> str:
        """
        Sanitize a name for safe use in generated source.

        The same input always maps to the same output for the lifetime
        of the sanitizer; distinct inputs that collide get a numeric
        suffix.

        Args:
            name: Original name to sanitize
            target_case: Desired case style
            suffix_on_conflict: Suffix to add for conflicts

        Returns:
            Sanitized name safe for use
        """
        cache_key = f"{name}_{target_case.value}_{suffix_on_conflict}"
        if cache_key in self._name_cache:
            return self._name_cache[cache_key]

        cleaned = self._clean_basic(name)
        converted = convert_case(cleaned, target_case)
        final_name = self._resolve_conflicts(converted, suffix_on_conflict)

        self._name_cache[cache_key] = final_name
        self._used_names.add(final_name)

        return final_name

    def claim_name(self, name: str, target_case: NamingCase = NamingCase.ORIGINAL) -> str:
        """Like sanitize_name, but every call yields a fresh unused name."""
        converted = convert_case(self._clean_basic(name), target_case)
        final_name = self._resolve_conflicts(converted, "_")
        self._used_names.add(final_name)
        return final_name

    def _clean_basic(self, name: str) -> str:
        """Basic name cleanup - remove invalid characters."""
        cleaned = re.sub(r'[^a-zA-Z0-9_$-]', '_', name)
        cleaned = cleaned.strip('_-')

        if cleaned and cleaned[0].isdigit():
            cleaned = f"_{cleaned}"

        if not cleaned:
            cleaned = "field"

        return cleaned

    def _resolve_conflicts(self, name: str, suffix: str) -> str:
        """Resolve naming conflicts with reserved words and existing names."""
        if name in self.reserved_words or name in self.builtin_types:
            name = f"{name}{suffix}"

        original_name = name
        counter = 1
        while name in self._used_names:
            name = f"{original_name}{counter}"
            counter += 1

        return name

    def is_used(self, name: str) -> bool:
        return name in self._used_names

    def reset_used_names(self):
        """Reset the tracking of used names."""
        self._used_names.clear()
        self._name_cache.clear()

    def add_used_name(self, name: str):
        """Manually add a name to the used names set."""
        self._used_names.add(name)


TYPESCRIPT_RESERVED = {
    'break', 'case', 'catch', 'class', 'const', 'continue', 'debugger',
    'default', 'delete', 'do', 'else', 'enum', 'export', 'extends', 'false',
    'finally', 'for', 'function', 'if', 'import', 'in', 'instanceof', 'new',
    'null', 'return', 'super', 'switch', 'this', 'throw', 'true', 'try',
    'typeof', 'var', 'void', 'while', 'with', 'as', 'implements', 'interface',
    'let', 'package', 'private', 'protected', 'public', 'static', 'yield',
    'await', 'type',
}

# Names the generated schema modules import or declare themselves
TYPESCRIPT_BUILTINS = {
    'relations', 'sql', 'db', 'Database', 'Generated', 'Date', 'Object',
    'String', 'Number', 'Boolean', 'Array', 'Promise', 'crypto',
}

PRISMA_RESERVED = {
    'datasource', 'generator', 'model', 'enum', 'type', 'view',
    'String', 'Boolean', 'Int', 'BigInt', 'Float', 'Decimal', 'DateTime',
    'Json', 'Bytes', 'Unsupported',
}


def create_typescript_sanitizer() -> NameSanitizer:
    """Create a name sanitizer configured for TypeScript."""
    return NameSanitizer(TYPESCRIPT_RESERVED, TYPESCRIPT_BUILTINS)


def create_prisma_sanitizer() -> NameSanitizer:
    """Create a name sanitizer configured for Prisma schema files."""
    return NameSanitizer(PRISMA_RESERVED)
