"""
Custom exceptions for the SBOM manager.
"""

from typing import Optional, Dict, Any, List


class SBOMManagerError(Exception):
    """
    Base exception for all SBOM manager errors.

    Every error raised by the ingestion pipeline, the document
    synthesizers, the exporters and the license engine derives from this
    class so callers can catch a single type at the outer boundary.
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        """
        Initialize SBOM manager error.

        Args:
            message: Error message
            error_code: Optional error code for categorization
            context: Additional context information
            cause: Original exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "context": self.context,
            "cause": str(self.cause) if self.cause else None
        }

    def __str__(self) -> str:
        """String representation of the error."""
        parts = [self.message]

        if self.error_code:
            parts.append(f"Code: {self.error_code}")

        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f"Context: {context_str}")

        if self.cause:
            parts.append(f"Caused by: {self.cause}")

        return " | ".join(parts)


class UnsupportedFileError(SBOMManagerError):
    """
    Raised when no ecosystem parser claims a file name.
    """

    def __init__(self, message: str, file_name: Optional[str] = None, **kwargs):
        """
        Initialize unsupported file error.

        Args:
            message: Error message
            file_name: Name of the file nobody could parse
            **kwargs: Additional arguments for base class
        """
        context = kwargs.get('context', {})
        if file_name:
            context['file_name'] = file_name

        kwargs['context'] = context
        kwargs.setdefault('error_code', 'UNSUPPORTED_FILE')
        super().__init__(message, **kwargs)

        self.file_name = file_name


class MalformedManifestError(SBOMManagerError):
    """
    Exception for manifest parsing errors.

    This exception is raised when a parser matched a file name but the
    content does not follow the grammar the parser expects (invalid JSON,
    unbalanced XML blocks, unterminated require blocks and so on).
    """

    def __init__(
        self,
        message: str,
        file_name: Optional[str] = None,
        parser_type: Optional[str] = None,
        line_number: Optional[int] = None,
        **kwargs
    ):
        """
        Initialize malformed manifest error.

        Args:
            message: Error message
            file_name: Name of the file that caused the error
            parser_type: Ecosystem of the parser that failed
            line_number: Line number where error occurred
            **kwargs: Additional arguments for base class
        """
        context = kwargs.get('context', {})
        if file_name:
            context['file_name'] = file_name
        if parser_type:
            context['parser_type'] = parser_type
        if line_number is not None:
            context['line_number'] = line_number

        kwargs['context'] = context
        kwargs.setdefault('error_code', 'MALFORMED_MANIFEST')
        super().__init__(message, **kwargs)

        self.file_name = file_name
        self.parser_type = parser_type
        self.line_number = line_number


class ScanError(SBOMManagerError):
    """
    Exception for scan-level failures.

    Raised when a scan cannot run at all (missing directory, no manifests
    found) or when a file cannot be read.
    """

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        files_scanned: Optional[int] = None,
        **kwargs
    ):
        """
        Initialize scan error.

        Args:
            message: Error message
            path: File or directory involved
            files_scanned: Number of files processed before the failure
            **kwargs: Additional arguments for base class
        """
        context = kwargs.get('context', {})
        if path:
            context['path'] = path
        if files_scanned is not None:
            context['files_scanned'] = files_scanned

        kwargs['context'] = context
        kwargs.setdefault('error_code', 'SCAN_FAILED')
        super().__init__(message, **kwargs)

        self.path = path
        self.files_scanned = files_scanned


class ValidationError(SBOMManagerError):
    """
    Exception for document validation errors.

    Raised when a synthesized SBOM document is missing required fields.
    The whole document is rejected; ``errors`` lists every problem found.
    """

    def __init__(
        self,
        message: str,
        errors: Optional[List[str]] = None,
        document_format: Optional[str] = None,
        **kwargs
    ):
        """
        Initialize validation error.

        Args:
            message: Error message
            errors: List of validation problems
            document_format: Format of the rejected document
            **kwargs: Additional arguments for base class
        """
        context = kwargs.get('context', {})
        if document_format:
            context['document_format'] = document_format
        if errors:
            context['error_count'] = len(errors)

        kwargs['context'] = context
        kwargs.setdefault('error_code', 'VALIDATION_FAILED')
        super().__init__(message, **kwargs)

        self.errors = errors or []
        self.document_format = document_format


class ExportError(SBOMManagerError):
    """
    Exception for SBOM export errors.

    This exception is raised when there are issues rendering or writing
    export artifacts.
    """

    def __init__(
        self,
        message: str,
        export_format: Optional[str] = None,
        output_path: Optional[str] = None,
        **kwargs
    ):
        """
        Initialize export error.

        Args:
            message: Error message
            export_format: Format being exported
            output_path: Output path that failed
            **kwargs: Additional arguments for base class
        """
        context = kwargs.get('context', {})
        if export_format:
            context['export_format'] = export_format
        if output_path:
            context['output_path'] = output_path

        kwargs['context'] = context
        kwargs.setdefault('error_code', 'EXPORT_FAILED')
        super().__init__(message, **kwargs)

        self.export_format = export_format
        self.output_path = output_path


class PersistenceError(SBOMManagerError):
    """
    Exception for SBOM store failures.
    """

    def __init__(
        self,
        message: str,
        sbom_id: Optional[str] = None,
        operation: Optional[str] = None,
        **kwargs
    ):
        """
        Initialize persistence error.

        Args:
            message: Error message
            sbom_id: SBOM identifier involved
            operation: Store operation that failed
            **kwargs: Additional arguments for base class
        """
        context = kwargs.get('context', {})
        if sbom_id:
            context['sbom_id'] = sbom_id
        if operation:
            context['operation'] = operation

        kwargs['context'] = context
        kwargs.setdefault('error_code', 'PERSISTENCE_FAILED')
        super().__init__(message, **kwargs)

        self.sbom_id = sbom_id
        self.operation = operation


class ConfigurationError(SBOMManagerError):
    """
    Exception for configuration errors.

    This exception is raised when there are issues with
    configuration loading, validation, or usage, including a
    request for a license policy that does not exist.
    """

    def __init__(
        self,
        message: str,
        config_section: Optional[str] = None,
        config_key: Optional[str] = None,
        **kwargs
    ):
        """
        Initialize configuration error.

        Args:
            message: Error message
            config_section: Configuration section with error
            config_key: Specific configuration key with error
            **kwargs: Additional arguments for base class
        """
        context = kwargs.get('context', {})
        if config_section:
            context['config_section'] = config_section
        if config_key:
            context['config_key'] = config_key

        kwargs['context'] = context
        kwargs.setdefault('error_code', 'CONFIGURATION_ERROR')
        super().__init__(message, **kwargs)

        self.config_section = config_section
        self.config_key = config_key
