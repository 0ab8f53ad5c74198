"""File classification: binary sniffing, coarse categories and code languages.

Classification never raises. A file that cannot be opened for sniffing is
treated as binary so that a scan never stops on an unreadable entry.
"""

from pathlib import Path
import enum

# Number of leading bytes inspected by the binary sniffer
BINARY_SAMPLE_SIZE = 1024

# Share of control bytes (TAB/LF/CR excluded) above which a sample is binary
BINARY_CONTROL_RATIO = 0.3

_TEXT_CONTROL_BYTES = frozenset({9, 10, 13})


class FileCategory(enum.StrEnum):
    """Coarse content category used to steer chunking."""

    CODE = "code"
    MARKUP = "markup"
    DATA = "data"
    CONFIG = "config"
    SCRIPT = "script"
    WEB = "web"
    TEXT = "text"

    @classmethod
    def from_path(cls, path: Path):
        suffix = path.suffix.lower()
        name = path.name.lower()

        match suffix:
            case (".js" | ".ts" | ".jsx" | ".tsx" | ".py" | ".java" | ".cpp" | ".c"
                  | ".h" | ".cs" | ".php" | ".rb" | ".go" | ".rs" | ".swift" | ".kt"):
                return cls.CODE
            case ".md" | ".mdx" | ".rst" | ".txt" | ".adoc" | ".org":
                return cls.MARKUP
        if name == "readme":
            return cls.MARKUP

        match suffix:
            case ".json" | ".yaml" | ".yml" | ".xml" | ".csv" | ".tsv" | ".toml" | ".ini" | ".conf":
                return cls.DATA
            case ".env" | ".config" | ".cfg" | ".properties":
                return cls.CONFIG
        if "config" in name or name.startswith("."):
            return cls.CONFIG

        match suffix:
            case ".sh" | ".bash" | ".zsh" | ".ps1" | ".bat" | ".cmd":
                return cls.SCRIPT
            case ".html" | ".htm" | ".css" | ".scss" | ".sass" | ".less":
                return cls.WEB
            case _:
                return cls.TEXT


class CodeLanguage(enum.StrEnum):
    """Languages with structural extraction support."""

    JAVASCRIPT = "javascript"
    TYPESCRIPT = "typescript"
    PYTHON = "python"


_EXTENSION_LANGUAGES: dict[str, CodeLanguage] = {
    ".js": CodeLanguage.JAVASCRIPT,
    ".jsx": CodeLanguage.JAVASCRIPT,
    ".mjs": CodeLanguage.JAVASCRIPT,
    ".cjs": CodeLanguage.JAVASCRIPT,
    ".ts": CodeLanguage.TYPESCRIPT,
    ".tsx": CodeLanguage.TYPESCRIPT,
    ".mts": CodeLanguage.TYPESCRIPT,
    ".cts": CodeLanguage.TYPESCRIPT,
    ".py": CodeLanguage.PYTHON,
    ".pyw": CodeLanguage.PYTHON,
    ".pyi": CodeLanguage.PYTHON,
}


def classify(path: Path | str) -> FileCategory:
    """Return the coarse category of a file from its name alone."""
    return FileCategory.from_path(Path(path))


def is_binary_content(sample: bytes) -> bool:
    """Decide whether a byte sample looks like binary content.

    Args:
        sample: Leading bytes of a file (at most BINARY_SAMPLE_SIZE are used)

    Returns:
        True if the sample holds a NUL byte or too many control bytes
    """
    sample = sample[:BINARY_SAMPLE_SIZE]
    if not sample:
        return False
    if b"\x00" in sample:
        return True

    control = sum(1 for byte in sample if byte < 32 and byte not in _TEXT_CONTROL_BYTES)
    return control / len(sample) > BINARY_CONTROL_RATIO


def is_binary_file(path: Path | str) -> bool:
    """Sniff the head of a file for binary content.

    Unreadable files are reported as binary.
    """
    try:
        with Path(path).open("rb") as f:
            sample = f.read(BINARY_SAMPLE_SIZE)
    except OSError:
        return True
    return is_binary_content(sample)


def language_from_shebang(first_line: str) -> CodeLanguage | None:
    """Map an interpreter line such as ``#!/usr/bin/env node`` to a language."""
    if not first_line.startswith("#!"):
        return None
    interpreter = first_line[2:].strip()
    if "ts-node" in interpreter:
        return CodeLanguage.TYPESCRIPT
    if "node" in interpreter:
        return CodeLanguage.JAVASCRIPT
    if "python" in interpreter:
        return CodeLanguage.PYTHON
    return None


def detect_language(path: Path | str, content: str | None = None) -> CodeLanguage | None:
    """Detect the structural language of a file.

    The extension is consulted first; when it says nothing the shebang line of
    ``content`` is tried.

    Args:
        path: File path
        content: Optional file text used for shebang detection

    Returns:
        CodeLanguage, or None when the file is not a supported language
    """
    language = _EXTENSION_LANGUAGES.get(Path(path).suffix.lower())
    if language is not None:
        return language
    if content:
        first_line = content.split("\n", 1)[0]
        return language_from_shebang(first_line)
    return None
