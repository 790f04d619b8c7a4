"""
Career application handling: form parsing, validation and email composition.

Everything here is free of network I/O so it can be exercised directly in
tests. Sending the composed message is the job of `email_service`.

Parsing is streaming: the route feeds request chunks into `CareerFormParser`,
which rejects a bad CV (wrong extension, too large) as soon as it can tell,
before any text field is looked at. The CV never leaves memory.
"""

from email.errors import HeaderParseError
from email.headerregistry import Address
from email.message import EmailMessage
from email.utils import formataddr
from pathlib import Path
from typing import Dict, Optional
from urllib.parse import parse_qsl

from pydantic import ValidationError
from python_multipart.multipart import MultipartParser, parse_options_header

from app.core.config import SmtpConfig
from app.models.schemas import Attachment, CareerForm, CareerSubmission
from app.utils.logging import logger, redact_email

CV_FIELD = "cv"
ALLOWED_CV_EXTENSIONS = frozenset({".pdf", ".doc", ".docx"})
CV_CONTENT_TYPES = {
    ".pdf": "application/pdf",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}
MAX_CV_BYTES = 5 * 1024 * 1024  # 5MB
DEFAULT_CV_FILENAME = "CV.pdf"
SENDER_NAME = "Career Applications"

REQUIRED_FIELDS_MESSAGE = "Name, phone number, and email are required."
UNSUPPORTED_FILE_TYPE_MESSAGE = "Only PDF, DOC, and DOCX files are allowed."
FILE_TOO_LARGE_MESSAGE = "CV file is too large. Maximum size is 5MB."
NOT_CONFIGURED_MESSAGE = "Email service is not configured. Please try again later."
UNAVAILABLE_MESSAGE = "Email service is temporarily unavailable. Please try again later."
SUBMIT_FAILED_MESSAGE = "Failed to submit application. Please try again later."
SUCCESS_MESSAGE = (
    "Your application has been submitted successfully. We will get back to you soon."
)


class CareerFormError(Exception):
    """Base class for problems with a submitted career form."""
    pass


class UnsupportedFileTypeError(CareerFormError):
    def __init__(self, message: str = UNSUPPORTED_FILE_TYPE_MESSAGE):
        super().__init__(message)


class FileTooLargeError(CareerFormError):
    def __init__(self, message: str = FILE_TOO_LARGE_MESSAGE):
        super().__init__(message)


class MalformedFormError(CareerFormError):
    """The body claims to be multipart but cannot be parsed as such."""
    pass


class SubmissionInvalid(CareerFormError):
    def __init__(self, message: str = REQUIRED_FIELDS_MESSAGE):
        super().__init__(message)


class CareerFormParser:
    """
    Incremental parser for the career form body.

    Supports multipart/form-data (text fields + the `cv` file) and
    application/x-www-form-urlencoded (text fields only). Any other body
    type yields an empty form, which then fails validation.

    Usage:
        parser = CareerFormParser(content_type)
        for chunk in chunks:
            parser.feed(chunk)
        form = parser.finish()
    """

    def __init__(self, content_type: str, max_file_size: int = MAX_CV_BYTES):
        self.max_file_size = max_file_size
        self._fields: Dict[str, str] = {}
        self._cv: Optional[Attachment] = None
        self._urlencoded: Optional[bytearray] = None
        self._multipart: Optional[MultipartParser] = None

        mime_type, options = parse_options_header(content_type or "")
        if mime_type == b"multipart/form-data":
            boundary = options.get(b"boundary")
            if not boundary:
                raise MalformedFormError("Missing multipart boundary.")
            self._multipart = MultipartParser(
                boundary,
                callbacks={
                    "on_part_begin": self._on_part_begin,
                    "on_header_field": self._on_header_field,
                    "on_header_value": self._on_header_value,
                    "on_header_end": self._on_header_end,
                    "on_headers_finished": self._on_headers_finished,
                    "on_part_data": self._on_part_data,
                    "on_part_end": self._on_part_end,
                },
            )
        elif mime_type == b"application/x-www-form-urlencoded":
            self._urlencoded = bytearray()

        self._reset_part()

    def feed(self, chunk: bytes) -> None:
        if not chunk:
            return
        if self._multipart is not None:
            self._multipart.write(chunk)
        elif self._urlencoded is not None:
            self._urlencoded.extend(chunk)

    def finish(self) -> CareerForm:
        if self._multipart is not None:
            self._multipart.finalize()
        elif self._urlencoded is not None:
            pairs = parse_qsl(self._urlencoded.decode("utf-8", errors="replace"), keep_blank_values=True)
            for key, value in pairs:
                self._fields.setdefault(key, value)
        return CareerForm(fields=self._fields, cv=self._cv)

    # -------------------------------------------------------------------------
    # multipart callbacks
    # -------------------------------------------------------------------------
    def _reset_part(self) -> None:
        self._headers: Dict[str, bytes] = {}
        self._header_field = bytearray()
        self._header_value = bytearray()
        self._part_name = ""
        self._part_filename: Optional[str] = None
        self._part_content_type = ""
        self._part_buffer = bytearray()
        self._skip_part = False

    def _on_part_begin(self) -> None:
        self._reset_part()

    def _on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._header_field.extend(data[start:end])

    def _on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._header_value.extend(data[start:end])

    def _on_header_end(self) -> None:
        name = self._header_field.decode("latin-1").strip().lower()
        self._headers[name] = bytes(self._header_value).strip()
        self._header_field = bytearray()
        self._header_value = bytearray()

    def _on_headers_finished(self) -> None:
        _, params = parse_options_header(self._headers.get("content-disposition", b""))
        self._part_name = params.get(b"name", b"").decode("utf-8", errors="replace")
        self._part_content_type = self._headers.get("content-type", b"").decode("latin-1")

        filename = params.get(b"filename")
        if filename is None:
            # Plain text field; the first occurrence of a name wins.
            self._skip_part = self._part_name in self._fields
            return

        self._part_filename = filename.decode("utf-8", errors="replace")
        if self._part_name != CV_FIELD or not self._part_filename or self._cv is not None:
            self._skip_part = True
            return

        if Path(self._part_filename).suffix.lower() not in ALLOWED_CV_EXTENSIONS:
            raise UnsupportedFileTypeError()

    def _on_part_data(self, data: bytes, start: int, end: int) -> None:
        if self._skip_part:
            return
        self._part_buffer.extend(data[start:end])
        if self._part_filename is not None and len(self._part_buffer) > self.max_file_size:
            raise FileTooLargeError()

    def _on_part_end(self) -> None:
        if self._skip_part:
            return
        if self._part_filename is None:
            self._fields[self._part_name] = self._part_buffer.decode("utf-8", errors="replace")
            return
        self._cv = Attachment(
            filename=self._part_filename,
            content=bytes(self._part_buffer),
            content_type=self._part_content_type or "application/octet-stream",
            size=len(self._part_buffer),
        )


def parse_career_form(body: bytes, content_type: str) -> CareerForm:
    """Parse a complete request body in one go."""
    parser = CareerFormParser(content_type)
    parser.feed(body)
    return parser.finish()


def validate_submission(form: CareerForm) -> CareerSubmission:
    """
    Turn a parsed form into a submission.

    Raises:
        SubmissionInvalid: if name, phone or email is missing or blank.
    """
    try:
        return CareerSubmission(
            name=form.fields.get("name", ""),
            phone=form.fields.get("phone", ""),
            email=form.fields.get("email", ""),
            cv=form.cv,
        )
    except ValidationError as exc:
        raise SubmissionInvalid() from exc


def escape_html(value: str) -> str:
    return (
        value.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def _single_line(value: str) -> str:
    # Header values may not contain line breaks.
    return " ".join(value.splitlines())


def reply_to_address(email: str) -> Optional[Address]:
    """
    Parse the applicant's email for the Reply-To header.

    Returns None when the address cannot be represented exactly as typed
    (unparsable, trailing garbage, or re-quoted by the header parser); the
    message then goes out without Reply-To rather than with a rewritten one.
    """
    if not email or email != _single_line(email):
        return None
    try:
        address = Address(addr_spec=email)
    except (ValueError, IndexError, HeaderParseError):
        return None
    if not address.username or not address.domain or address.addr_spec != email:
        return None
    return address


def cv_content_type(filename: str) -> str:
    return CV_CONTENT_TYPES.get(Path(filename).suffix.lower(), "application/octet-stream")


def build_career_message(submission: CareerSubmission, config: SmtpConfig) -> EmailMessage:
    """
    Compose the notification email for one application.

    The HTML part escapes every submitted value; the plain-text part is sent
    as-is. The CV, if any, is attached under its original filename, typed by
    its extension rather than by what the browser declared.
    """
    cv = submission.cv
    cv_label = (cv.filename or DEFAULT_CV_FILENAME) if cv else "Not provided"

    msg = EmailMessage()
    msg["From"] = formataddr((SENDER_NAME, config.user or ""))
    msg["To"] = config.to_address or ""

    reply_to = reply_to_address(submission.email)
    if reply_to is not None:
        msg["Reply-To"] = reply_to
    else:
        logger.warning(
            f"Applicant email {redact_email(submission.email)} is not a usable address; "
            "sending without Reply-To."
        )

    msg["Subject"] = f"New career application from {_single_line(submission.name)}"

    msg.set_content(
        "\n".join([
            "New career application received.",
            "",
            f"Name: {submission.name}",
            f"Phone: {submission.phone}",
            f"Email: {submission.email}",
            f"CV: {cv_label}",
            "",
        ])
    )
    msg.add_alternative(
        "\n".join([
            "<h2>New career application</h2>",
            f"<p><strong>Name:</strong> {escape_html(submission.name)}</p>",
            f"<p><strong>Phone:</strong> {escape_html(submission.phone)}</p>",
            f"<p><strong>Email:</strong> {escape_html(submission.email)}</p>",
            f"<p><strong>CV:</strong> {escape_html(cv_label)}</p>",
        ]),
        subtype="html",
    )

    if cv:
        filename = cv.filename or DEFAULT_CV_FILENAME
        maintype, subtype = cv_content_type(filename).split("/", 1)
        msg.add_attachment(
            cv.content,
            maintype=maintype,
            subtype=subtype,
            filename=filename,
        )

    return msg
