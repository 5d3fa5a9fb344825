import json
import logging

from sqlalchemy import text


logger = logging.getLogger("builtin_profiles")

BUILTIN_AUTHOR = "StyleCheck Team"

BUILTIN_PROFILES = [
    {
        "name": "Minimal",
        "description": "Lean preferences focusing only on critical style issues",
        "languages": ["python", "javascript", "typescript"],
        "preferences": {
            "naming": {
                "variables": "flexible",
                "functions": "flexible",
                "classes": "descriptive",
            },
            "organization": {
                "max_function_length": 200,
                "imports_grouped": False,
            },
            "documentation": {
                "comment_style": "minimal",
                "docstring_format": "optional",
            },
            "typing": {
                "coverage": "none",
                "return_annotations": "none",
            },
            "structure": {
                "line_length": 120,
                "blank_lines": "liberal",
            },
            "error_handling": {
                "validation": "optimistic",
                "logging": "minimal",
            },
            "practices": {
                "prefer_f_strings": False,
                "allow_walrus": True,
            },
        },
        "custom_rules": ["Avoid duplicate code", "Keep it simple"],
    },
    {
        "name": "PEP 8",
        "description": "Standard Python style guide (PEP 8) compliance",
        "languages": ["python"],
        "preferences": {
            "naming": {
                "variables": "snake_case",
                "functions": "snake_case",
                "classes": "PascalCase",
                "constants": "UPPER_CASE",
            },
            "organization": {
                "max_function_length": 50,
                "imports_grouped": True,
                "import_order": "stdlib, third-party, local",
            },
            "documentation": {
                "comment_style": "moderate",
                "docstring_format": "google",
            },
            "typing": {
                "coverage": "recommended",
                "return_annotations": "public_functions",
            },
            "structure": {
                "line_length": 79,
                "blank_lines": "conservative",
                "indent_size": 4,
            },
            "error_handling": {
                "validation": "balanced",
                "logging": "moderate",
            },
            "practices": {
                "prefer_f_strings": True,
                "allow_walrus": False,
            },
        },
        "custom_rules": [
            "Follow PEP 8 naming conventions",
            "Maximum line length 79 characters",
            "Use 4 spaces for indentation",
            "Two blank lines between top-level definitions",
        ],
    },
    {
        "name": "Google Style",
        "description": "Google's Python style guide conventions",
        "languages": ["python"],
        "preferences": {
            "naming": {
                "variables": "snake_case",
                "functions": "snake_case",
                "classes": "CapWords",
                "constants": "CAPS_WITH_UNDERSCORES",
            },
            "organization": {
                "max_function_length": 60,
                "imports_grouped": True,
                "import_order": "stdlib, third-party, local",
            },
            "documentation": {
                "comment_style": "detailed",
                "docstring_format": "google",
                "require_docstrings": True,
            },
            "typing": {
                "coverage": "comprehensive",
                "return_annotations": "always",
                "modern_syntax": True,
            },
            "structure": {
                "line_length": 80,
                "blank_lines": "conservative",
                "indent_size": 4,
            },
            "error_handling": {
                "validation": "defensive",
                "logging": "extensive",
                "explicit_exceptions": True,
            },
            "practices": {
                "prefer_f_strings": True,
                "allow_walrus": True,
                "use_type_hints": True,
            },
        },
        "custom_rules": [
            "All public functions must have docstrings",
            "Use Google-style docstring format",
            "Prefer explicit over implicit",
            "Use type hints for all function signatures",
        ],
    },
    {
        "name": "Type-Safe",
        "description": "Heavy emphasis on type annotations and type safety",
        "languages": ["python", "typescript"],
        "preferences": {
            "naming": {
                "variables": "snake_case",
                "functions": "verb_first",
                "classes": "PascalCase",
            },
            "organization": {
                "max_function_length": 50,
                "imports_grouped": True,
                "separate_type_imports": True,
            },
            "documentation": {
                "comment_style": "moderate",
                "docstring_format": "detailed",
            },
            "typing": {
                "coverage": "comprehensive",
                "return_annotations": "always",
                "parameter_annotations": "always",
                "modern_syntax": True,
                "strict_optional": True,
            },
            "structure": {
                "line_length": 100,
                "blank_lines": "conservative",
            },
            "error_handling": {
                "validation": "defensive",
                "logging": "extensive",
                "typed_exceptions": True,
            },
            "practices": {
                "prefer_f_strings": True,
                "allow_walrus": True,
                "immutability_preferred": True,
            },
        },
        "custom_rules": [
            "All function parameters must have type hints",
            "All return types must be annotated",
            "Use mypy strict mode",
            "Avoid Any type except when absolutely necessary",
            "Prefer TypedDict over dict for structured data",
        ],
    },
    {
        "name": "Pragmatic",
        "description": "Balanced, readability-focused pragmatic style",
        "languages": ["python", "javascript", "typescript"],
        "preferences": {
            "naming": {
                "variables": "descriptive",
                "functions": "verb_first",
                "classes": "descriptive",
            },
            "organization": {
                "max_function_length": 75,
                "imports_grouped": True,
                "logical_grouping": True,
            },
            "documentation": {
                "comment_style": "explain_why",
                "docstring_format": "concise",
            },
            "typing": {
                "coverage": "balanced",
                "return_annotations": "complex_functions",
            },
            "structure": {
                "line_length": 100,
                "blank_lines": "readable",
                "visual_alignment": True,
            },
            "error_handling": {
                "validation": "balanced",
                "logging": "actionable",
                "fail_fast": True,
            },
            "practices": {
                "prefer_f_strings": True,
                "allow_walrus": True,
                "readability_over_cleverness": True,
            },
        },
        "custom_rules": [
            "Code should be self-documenting",
            "Comments explain why, not what",
            "Optimize for readability",
            "Avoid premature optimization",
            "Prefer simple over clever",
        ],
    },
    {
        "name": "Strict",
        "description": "Very opinionated style that catches everything",
        "languages": ["python", "javascript", "typescript"],
        "preferences": {
            "naming": {
                "variables": "snake_case",
                "functions": "verb_first",
                "classes": "PascalCase",
                "constants": "UPPER_CASE",
                "private_prefix": "_",
            },
            "organization": {
                "max_function_length": 30,
                "max_class_length": 200,
                "imports_grouped": True,
                "import_order": "alphabetical",
                "one_import_per_line": True,
            },
            "documentation": {
                "comment_style": "comprehensive",
                "docstring_format": "detailed",
                "require_docstrings": True,
                "require_type_hints_in_docstrings": True,
            },
            "typing": {
                "coverage": "complete",
                "return_annotations": "always",
                "parameter_annotations": "always",
                "variable_annotations": "complex_types",
                "modern_syntax": True,
                "strict_optional": True,
            },
            "structure": {
                "line_length": 88,
                "blank_lines": "strict",
                "indent_size": 4,
                "trailing_commas": "always",
            },
            "error_handling": {
                "validation": "paranoid",
                "logging": "extensive",
                "explicit_exceptions": True,
                "no_bare_except": True,
            },
            "practices": {
                "prefer_f_strings": True,
                "allow_walrus": False,
                "immutability_preferred": True,
                "no_mutable_defaults": True,
                "explicit_is_better": True,
            },
        },
        "custom_rules": [
            "Every function must have a docstring",
            "Every public API must have type annotations",
            "No functions longer than 30 lines",
            "No classes longer than 200 lines",
            "All imports must be absolute",
            "No wildcard imports",
            "No mutable default arguments",
            "Always use context managers for resources",
            "Prefer composition over inheritance",
            "Single responsibility principle strictly enforced",
        ],
    },
]


def seed_builtin_profiles(session) -> int:
    """
    Insert the built-in profile catalog when absent

    Runs inside the caller's transaction so either every missing built-in is
    inserted or none are; rows whose name already exists are left untouched

    Args:
        session: SQLAlchemy session

    Returns:
        int number of rows inserted
    """
    inserted = 0
    for profile in BUILTIN_PROFILES:
        result = session.execute(
            text(
                "INSERT INTO profiles ("
                " name, description, author, languages, preferences, custom_rules, is_builtin"
                ") VALUES ("
                " :name, :description, :author, :languages, :preferences, :custom_rules, :is_builtin"
                ") ON CONFLICT (name) DO NOTHING"
            ),
            {
                "name": profile["name"],
                "description": profile["description"],
                "author": BUILTIN_AUTHOR,
                "languages": json.dumps(profile["languages"]),
                "preferences": json.dumps(profile["preferences"]),
                "custom_rules": json.dumps(profile["custom_rules"]),
                "is_builtin": True,
            },
        )
        inserted += max(0, result.rowcount or 0)

    logger.info("Seeded built-in profiles inserted=%s catalog=%s", inserted, len(BUILTIN_PROFILES))
    return inserted
