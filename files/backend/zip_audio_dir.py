import os
from datetime import datetime, timezone
from itertools import chain, islice
from typing import Iterator, List, Tuple
from zipfile import ZIP_DEFLATED

from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, Response, StreamingResponse
from zipstream import ZipStream

from files.classes.archive_entry import ArchiveEntry

ARCHIVE_FILENAME = "audio.zip"
ARCHIVE_PREFIX = "audio"
COMPRESS_LEVEL = 9  # best compression

# zipstream-ng yields an entry's local header before it opens the file, so the
# second chunk is the first one that actually reads from disk
PRIMED_CHUNKS = 2


def _raise_walk_error(err: OSError):
    raise err


def collect_audio_entries(audio_dir: str, prefix: str = ARCHIVE_PREFIX) -> List[ArchiveEntry]:
    """
    Walk audio_dir and return one entry per regular file, in sorted order.

    Arcnames are the path relative to audio_dir under ``prefix/``. A missing
    directory gives an empty list; a path that exists but is not a directory,
    or a subdirectory that cannot be listed, raises.
    """
    entries = []
    if not os.path.exists(audio_dir):
        return entries
    if not os.path.isdir(audio_dir):
        raise NotADirectoryError(f"Not a directory: {audio_dir}")

    for dirpath, dirnames, filenames in os.walk(audio_dir, onerror=_raise_walk_error):
        # sort in place so os.walk descends in a stable order
        dirnames.sort()
        for filename in sorted(filenames):
            path = os.path.join(dirpath, filename)
            if not os.path.isfile(path):
                continue
            relative = os.path.relpath(path, audio_dir).replace(os.sep, "/")
            entries.append(ArchiveEntry(path=path, arcname=f"{prefix}/{relative}"))

    return entries


def iter_zip_chunks(
    entries: List[ArchiveEntry], compress_level: int = COMPRESS_LEVEL
) -> Iterator[bytes]:
    # files are only opened and compressed as the stream is consumed
    zs = ZipStream(compress_type=ZIP_DEFLATED, compress_level=compress_level)
    for entry in entries:
        zs.add_path(entry.path, arcname=entry.arcname)
    yield from zs


def open_audio_archive(audio_dir: str) -> Tuple[List[bytes], Iterator[bytes]]:
    """
    Enumerate audio_dir and pull the start of its archive.

    Runs in the threadpool. Everything that fails in here happens before any
    byte reaches the client, so it can still be answered with a 500.

    Returns:
        The primed chunks and the iterator for the rest of the archive.
    """
    if not os.path.exists(audio_dir):
        print(f"Warning: Audio directory not found: {audio_dir}")

    entries = collect_audio_entries(audio_dir)
    chunks = iter_zip_chunks(entries)
    head = list(islice(chunks, PRIMED_CHUNKS))
    return head, chunks


def _log_stream_errors(chunks: Iterator[bytes]) -> Iterator[bytes]:
    try:
        yield from chunks
    except Exception as e:
        # headers are already sent, the client is left with a truncated zip
        print(f"Archive error: {e}")
        raise


def _utc_timestamp() -> str:
    # millisecond precision with a Z suffix, e.g. 2024-05-01T12:00:00.000Z
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


async def stream_audio_zip(audio_dir: str) -> Response:
    try:
        try:
            head, chunks = await run_in_threadpool(open_audio_archive, audio_dir)
        except Exception as e:
            print(f"Archive error: {e}")
            return JSONResponse(status_code=500, content={"error": str(e)})

        print(f"Audio files downloaded at {_utc_timestamp()}")

        return StreamingResponse(
            _log_stream_errors(chain(head, chunks)),
            media_type="application/zip",
            headers={
                "Content-Disposition": f'attachment; filename="{ARCHIVE_FILENAME}"'
            },
        )
    except Exception as e:
        print(f"Error in /provide/audio: {e}")
        return JSONResponse(
            status_code=500, content={"error": "Failed to provide audio files"}
        )
