from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from idea_inbox.api.deps import get_store
from idea_inbox.export.archive import archive_to_zip, build_archive, export_filename
from idea_inbox.inbox.store import InboxStore
from idea_inbox.util.time import now_utc

router = APIRouter()


@router.get("", response_class=Response)
def export_inbox(store: InboxStore = Depends(get_store)) -> Response:
    """Download the whole inbox as a zip of Markdown notes.

    An empty inbox yields a valid, empty zip; the UI decides whether to offer it.
    """

    notes = store.list_all()
    data = archive_to_zip(build_archive(notes))
    filename = export_filename(now_utc().date())
    return Response(
        content=data,
        media_type="application/zip",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "X-Note-Count": str(len(notes)),
        },
    )
