import os
import sys
import zipfile
from typing import Dict, List, Optional

import requests
from dotenv import load_dotenv

load_dotenv()

DEFAULT_SERVER_URL = "http://localhost:3000"
CHUNK_SIZE = 64 * 1024


class AudioDownloader:
    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip("/")

    def check_health(self) -> Dict:
        response = requests.get(f"{self.base_url}/health", timeout=10)
        response.raise_for_status()
        return response.json()

    def download(self, dest_path: str, chunk_size: int = CHUNK_SIZE) -> int:
        """
        Stream the audio archive from the server into dest_path.

        Returns:
            Number of bytes written. If the transfer fails part way, the
            partial file is removed and the error is re-raised.
        """
        written = 0
        with requests.get(
            f"{self.base_url}/provide/audio", stream=True, timeout=30
        ) as response:
            response.raise_for_status()
            try:
                with open(dest_path, "wb") as f:
                    for chunk in response.iter_content(chunk_size=chunk_size):
                        if chunk:
                            f.write(chunk)
                            written += len(chunk)
            except Exception:
                if os.path.exists(dest_path):
                    os.remove(dest_path)
                raise
        return written

    def extract(self, zip_path: str, dest_dir: str) -> List[str]:
        if not zipfile.is_zipfile(zip_path):
            raise ValueError(f"{zip_path} is not a complete zip archive")

        with zipfile.ZipFile(zip_path) as zf:
            names = zf.namelist()
            zf.extractall(dest_dir)
        return names


def get_server_url() -> str:
    return os.getenv("AUDIO_SERVER_URL", DEFAULT_SERVER_URL)


def main(argv: Optional[List[str]] = None) -> int:
    """Download audio.zip from the server, optionally extracting it."""
    args = sys.argv[1:] if argv is None else argv
    output_path = args[0] if args else "audio.zip"
    extract_dir = args[1] if len(args) > 1 else None

    downloader = AudioDownloader(get_server_url())
    print(f"🎵 Audio server: {downloader.base_url}")

    try:
        health = downloader.check_health()
        print(f"✅ {health.get('message', 'Server is up')}")

        written = downloader.download(output_path)
        print(f"📦 Saved {written} bytes to {output_path}")

        if extract_dir:
            names = downloader.extract(output_path, extract_dir)
            print(f"📁 Extracted {len(names)} files to {extract_dir}")
    except requests.exceptions.RequestException as e:
        print(f"❌ Request failed: {e}")
        return 1
    except ValueError as e:
        print(f"❌ {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
