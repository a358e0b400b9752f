"""
Response builders for sending stored files to clients.
"""
from typing import Dict, Mapping, Optional
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field
from starlette.background import BackgroundTasks
from starlette.responses import Response


class XSendFileOptions(BaseModel):
    """Options of an accelerated send."""
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    save_name: Optional[str] = Field(default=None, alias="saveName")
    mime_type: Optional[str] = Field(default=None, alias="mimeType")
    x_header: str = Field(default="X-Sendfile", alias="xHeader")
    force_download: bool = Field(default=True, alias="forceDownload")
    terminate: bool = True
    add_headers: Dict[str, str] = Field(default_factory=dict, alias="addHeaders")


def content_disposition(filename: str, force_download: bool = True) -> str:
    """Content-Disposition header value, RFC 5987 encoded for non-ASCII names."""
    disposition = "attachment" if force_download else "inline"
    quoted = quote(filename)
    if quoted != filename:
        return f"{disposition}; filename*=utf-8''{quoted}"
    return f'{disposition}; filename="{filename}"'


def _background(terminate: bool) -> Optional[BackgroundTasks]:
    # A non-terminating send leaves room for work after the body is delivered
    return None if terminate else BackgroundTasks()


def build_file_response(
    name: str,
    content: bytes,
    mime: str,
    terminate: bool = True
) -> Response:
    """Buffered response holding the whole file."""
    return Response(
        content=content,
        media_type=mime or "application/octet-stream",
        headers={"Content-Disposition": content_disposition(name)},
        background=_background(terminate),
    )


def build_x_send_file_response(target: str, options: XSendFileOptions) -> Response:
    """Empty response telling the web server which file to stream."""
    headers: Dict[str, str] = {
        options.x_header: target,
        "Content-Disposition": content_disposition(options.save_name or "", options.force_download),
    }
    headers.update(options.add_headers)
    return Response(
        content=b"",
        media_type=options.mime_type or "application/octet-stream",
        headers=headers,
        background=_background(options.terminate),
    )


def merge_options(options: Optional[Mapping], defaults: Mapping) -> XSendFileOptions:
    """Apply defaults for every option the caller left out."""
    aliases = {name: info.alias or name for name, info in XSendFileOptions.model_fields.items()}
    merged = {aliases.get(k, k): v for k, v in defaults.items()}
    merged.update({aliases.get(k, k): v for k, v in (options or {}).items() if v is not None})
    return XSendFileOptions.model_validate(merged)
