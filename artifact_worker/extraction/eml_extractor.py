from email import policy
from email.message import EmailMessage
from email.parser import BytesParser

from bs4 import BeautifulSoup

from artifact_worker.extraction.base import BaseExtractor
from artifact_worker.extraction.exceptions import EmailExtractionError, EmptyContentError


class EmlExtractor(BaseExtractor):
    """Renders an email as its headers, body text and a list of attachments.

    Plain text parts are preferred over HTML; HTML bodies are reduced to text.
    Attachment content is not extracted, only named.
    """

    name = "email"

    EMAIL_TYPES = (
        "message/rfc822",
        "application/vnd.ms-outlook",
        "message/x-emlx",
    )
    HEADERS = ("From", "To", "Cc", "Subject", "Date")

    def can_handle(self, mime_type: str) -> bool:
        return mime_type.startswith(self.EMAIL_TYPES)

    def extract(self, data: bytes) -> str:
        try:
            message = BytesParser(policy=policy.default).parsebytes(data)
            headers = [
                f"{name}: {message[name]}" for name in self.HEADERS if message[name]
            ]
            body, attachments = self._body(message)
        except (ValueError, TypeError, IndexError, LookupError) as exc:
            raise EmailExtractionError(f"Failed to parse email: {exc}") from exc

        if not headers and not body.strip():
            raise EmptyContentError("No text content found in email")

        lines = ["=== Email Message ===", "", "--- Headers ---", *headers, "", "--- Body ---", ""]
        text = "\n".join(lines) + "\n" + body.strip()
        if attachments:
            text += "\n\n--- Attachments ---\n" + "\n".join(attachments) + "\n"
        return text

    def _body(self, message: EmailMessage) -> tuple[str, list[str]]:
        if not message.is_multipart():
            return self._single_part(message), []

        plain: str | None = None
        html: str | None = None
        attachments: list[str] = []
        for part in message.walk():
            filename = part.get_filename()
            disposition = part.get_content_disposition()
            if disposition == "attachment" or (disposition == "inline" and filename):
                attachments.append(f"- {filename or 'unnamed'} ({part.get_content_type()})")
                continue
            if part.is_multipart():
                continue
            content_type = part.get_content_type()
            if content_type == "text/plain" and plain is None:
                plain = _part_text(part)
            elif content_type == "text/html" and html is None:
                html = _part_text(part)

        if plain and plain.strip():
            return plain, attachments
        if html:
            return html_to_text(html), attachments
        return "", attachments

    def _single_part(self, message: EmailMessage) -> str:
        content_type = message.get_content_type()
        text = _part_text(message)
        if content_type == "text/html":
            return html_to_text(text)
        if content_type.startswith("text/"):
            return text
        return f"[Content Type: {content_type}]\n{text}"


def html_to_text(html: str) -> str:
    """Visible text of an HTML fragment, one block per line."""
    soup = BeautifulSoup(html, "html.parser")
    for element in soup(["script", "style"]):
        element.decompose()
    lines = (line.strip() for line in soup.get_text("\n").splitlines())
    return "\n".join(line for line in lines if line)


def _part_text(part: EmailMessage) -> str:
    try:
        content = part.get_content()
    except (LookupError, UnicodeError):
        content = part.get_payload(decode=True) or b""
    if isinstance(content, bytes):
        return content.decode("utf-8", errors="replace")
    return str(content)
