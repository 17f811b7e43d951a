from dataclasses import dataclass


# one file on disk and the name it gets inside the served zip
@dataclass
class ArchiveEntry:
    path: str  # absolute path on disk
    arcname: str  # always "/" separated, e.g. "audio/sub/b.wav"
