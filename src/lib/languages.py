"""
Language tables and icon markup

Lookup tables shared by the code-block renderer, the snippet importer and
the inline icon directive:

- DEVICONS: language / file extension -> devicon class
- HIGHLIGHT_ALIASES: package-manager "languages" highlighted as shell
- EXTENSION_LANGUAGES: file extension -> fence language for snippets
- TERMINAL_LANGUAGES: languages shown with a terminal icon
"""

import html
from pathlib import PurePosixPath
from typing import Dict, Optional, Tuple

DEVICONS: Dict[str, str] = {
    "bash": "devicon-bash-plain colored",
    "c": "devicon-c-plain colored",
    "cpp": "devicon-cplusplus-plain colored",
    "cs": "devicon-csharp-plain colored",
    "csharp": "devicon-csharp-plain colored",
    "css": "devicon-css3-plain colored",
    "dart": "devicon-dart-plain colored",
    "docker": "devicon-docker-plain colored",
    "dockerfile": "devicon-docker-plain colored",
    "elixir": "devicon-elixir-plain colored",
    "ex": "devicon-elixir-plain colored",
    "go": "devicon-go-plain colored",
    "golang": "devicon-go-plain colored",
    "gql": "devicon-graphql-plain colored",
    "graphql": "devicon-graphql-plain colored",
    "h": "devicon-c-plain colored",
    "haskell": "devicon-haskell-plain colored",
    "hs": "devicon-haskell-plain colored",
    "htm": "devicon-html5-plain colored",
    "html": "devicon-html5-plain colored",
    "java": "devicon-java-plain colored",
    "javascript": "devicon-javascript-plain colored",
    "js": "devicon-javascript-plain colored",
    "json": "devicon-json-plain colored",
    "jsx": "devicon-react-original colored",
    "kotlin": "devicon-kotlin-plain colored",
    "kt": "devicon-kotlin-plain colored",
    "lua": "devicon-lua-plain colored",
    "markdown": "devicon-markdown-original",
    "md": "devicon-markdown-original",
    "npm": "devicon-npm-original-wordmark colored",
    "php": "devicon-php-plain colored",
    "pip": "devicon-python-plain colored",
    "pnpm": "devicon-pnpm-plain colored",
    "postgresql": "devicon-postgresql-plain colored",
    "py": "devicon-python-plain colored",
    "python": "devicon-python-plain colored",
    "r": "devicon-r-plain colored",
    "rb": "devicon-ruby-plain colored",
    "rs": "devicon-rust-original colored",
    "ruby": "devicon-ruby-plain colored",
    "rust": "devicon-rust-original colored",
    "sass": "devicon-sass-original colored",
    "scala": "devicon-scala-plain colored",
    "scss": "devicon-sass-original colored",
    "sql": "devicon-azuresqldatabase-plain colored",
    "svelte": "devicon-svelte-plain colored",
    "swift": "devicon-swift-plain colored",
    "terraform": "devicon-terraform-plain colored",
    "tf": "devicon-terraform-plain colored",
    "ts": "devicon-typescript-plain colored",
    "tsx": "devicon-react-original colored",
    "typescript": "devicon-typescript-plain colored",
    "vue": "devicon-vuejs-plain colored",
    "xml": "devicon-xml-plain colored",
    "yaml": "devicon-yaml-plain colored",
    "yml": "devicon-yaml-plain colored",
    "yarn": "devicon-yarn-plain colored",
    "zig": "devicon-zig-plain colored",
}

HIGHLIGHT_ALIASES: Dict[str, str] = {
    "apt": "bash",
    "bun": "bash",
    "cargo": "bash",
    "composer": "bash",
    "gem": "bash",
    "homebrew": "bash",
    "npm": "bash",
    "pacman": "bash",
    "pip": "bash",
    "pnpm": "bash",
    "yarn": "bash",
}

EXTENSION_LANGUAGES: Dict[str, str] = {
    "rb": "ruby",
    "js": "javascript",
    "ts": "typescript",
    "py": "python",
    "yml": "yaml",
    "md": "markdown",
    "sh": "bash",
    "zsh": "bash",
    "jsx": "jsx",
    "tsx": "tsx",
}

TERMINAL_LANGUAGES = ("bash", "sh", "shell", "zsh", "console", "powershell")

PHOSPHOR_WEIGHTS = ("regular", "bold", "fill", "light", "thin", "duotone")


def highlightLanguage_get(lang: str) -> str:
    """Map a fence language to the token handed to the highlighter"""
    return HIGHLIGHT_ALIASES.get(lang.lower(), lang)


def snippetLanguage_get(path: str) -> str:
    """Fence language for an imported file, from its extension"""
    extension = PurePosixPath(path).suffix.lstrip(".")
    return EXTENSION_LANGUAGES.get(extension, extension)


def phosphorIcon_render(name: str, weight: str = "regular") -> str:
    """
    Render a Phosphor icon element.

    Unknown weights fall back to regular.

    Example:
        >>> phosphorIcon_render("rocket", "bold")
        '<i class="ph-bold ph-rocket" aria-hidden="true"></i>'
    """
    if weight not in PHOSPHOR_WEIGHTS:
        weight = "regular"
    prefix = "ph" if weight == "regular" else f"ph-{weight}"
    return f'<i class="{prefix} ph-{html.escape(name)}" aria-hidden="true"></i>'


def languageIcon_render(lang: Optional[str]) -> str:
    """Devicon markup for a language or file extension, or "" if unknown"""
    if not lang:
        return ""
    devicon = DEVICONS.get(lang.lower())
    if devicon:
        return f'<i class="{devicon}" aria-hidden="true"></i>'
    if lang.lower() in TERMINAL_LANGUAGES:
        return phosphorIcon_render("terminal-window")
    return ""


def titleIcon_detect(title: Optional[str], lang: Optional[str]) -> Tuple[Optional[str], str]:
    """
    Split a code-block title into (display title, icon HTML).

    - ``:name: Title`` uses the Phosphor icon ``name``
    - a filename-like title (``config.yml``) uses the icon of its extension
    - otherwise the block language supplies the icon

    Returns (None, "") for untitled blocks.
    """
    if not title:
        return None, ""

    title = title.strip()
    if title.startswith(":"):
        name, _, rest = title[1:].partition(":")
        if name and rest.strip() and all(ch.isalnum() or ch == "-" for ch in name):
            return rest.strip(), phosphorIcon_render(name.lower())

    extension = PurePosixPath(title).suffix.lstrip(".").lower()
    if extension and extension in DEVICONS:
        return title, languageIcon_render(extension)

    return title, languageIcon_render(lang)
