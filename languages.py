"""Pasty languages.

A name is matched case-insensitively against language names first; an alias
or file extension match is only used when no language carries that name.
"""
from typing import List, NamedTuple

DEFAULT_LANGUAGE = "Text"


class Language(NamedTuple):
    name: str
    aliases: tuple = ()
    extensions: tuple = ()


class LanguageNotFoundError(LookupError):
    pass


LANGUAGES: List[Language] = sorted([
    Language("Text", ("plain", "plaintext"), (".txt",)),
    Language("Markdown", ("md", "pandoc"), (".md", ".markdown")),
    Language("Python", ("python3", "py"), (".py", ".pyi", ".pyw")),
    Language("JavaScript", ("js", "node"), (".js", ".mjs", ".cjs")),
    Language("TypeScript", ("ts",), (".ts", ".tsx")),
    Language("JSON", ("geojson", "jsonl"), (".json",)),
    Language("YAML", ("yml",), (".yml", ".yaml")),
    Language("TOML", (), (".toml",)),
    Language("HTML", ("xhtml",), (".html", ".htm")),
    Language("CSS", (), (".css",)),
    Language("SQL", (), (".sql",)),
    Language("Shell", ("sh", "bash", "zsh", "shell-script"), (".sh", ".bash", ".zsh")),
    Language("C", (), (".c", ".h")),
    Language("C++", ("cpp",), (".cpp", ".cc", ".hpp", ".cxx")),
    Language("C#", ("csharp", "cake"), (".cs",)),
    Language("D", ("dlang",), (".d", ".di")),
    Language("Go", ("golang",), (".go",)),
    Language("Rust", ("rs",), (".rs",)),
    Language("Java", (), (".java",)),
    Language("Kotlin", (), (".kt", ".kts")),
    Language("Ruby", ("rb", "jruby"), (".rb",)),
    Language("PHP", ("inc",), (".php",)),
    Language("Lua", (), (".lua",)),
    Language("Haskell", (), (".hs",)),
    Language("Svelte", (), (".svelte",)),
    Language("Dockerfile", ("Containerfile",), (".dockerfile",)),
], key=lambda lang: lang.name)


def find_by_name(name: str) -> Language:
    wanted = name.lower()
    found = None
    for language in LANGUAGES:
        if language.name.lower() == wanted:
            return language
        if found is not None:
            continue
        if any(wanted == ext[1:].lower() for ext in language.extensions) or \
                any(wanted == alias.lower() for alias in language.aliases):
            found = language
    if found is None:
        raise LanguageNotFoundError(name)
    return found
