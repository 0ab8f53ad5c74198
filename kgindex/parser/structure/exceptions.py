"""
Custom exceptions for structure extraction.

This module defines all exceptions that can be raised while turning source
text into a CodeStructure.
"""


class StructureExtractionError(Exception):
    """Exception raised when structure extraction fails.

    This can occur when:
      - Tree-sitter parsing encounters unexpected node structures
      - Recursion depth is exceeded during AST traversal
      - Any other unexpected error during extraction

    Attributes:
        message: Explanation of the error
        language: The language being parsed (if available)
        file_path: The file being parsed (if available)
    """

    def __init__(
        self,
        message: str,
        language: str | None = None,
        file_path: str | None = None,
    ):
        self.message = message
        self.language = language
        self.file_path = file_path

        details = []
        if language:
            details.append(f"language={language}")
        if file_path:
            details.append(f"file={file_path}")

        full_message = message
        if details:
            full_message = f"{message} [{', '.join(details)}]"

        super().__init__(full_message)


class UnsupportedLanguageError(Exception):
    """Exception raised when asking for an extractor of an unsupported language.

    Attributes:
        language: The unsupported language identifier
        supported_languages: List of supported language identifiers
    """

    def __init__(
        self,
        language: str,
        supported_languages: list[str] | None = None,
    ):
        self.language = language
        self.supported_languages = supported_languages or []

        message = f"Unsupported language for structure extraction: '{language}'"
        if self.supported_languages:
            message += f". Supported languages: {', '.join(self.supported_languages)}"

        super().__init__(message)
