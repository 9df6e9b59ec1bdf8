"""CLI: upload a video for a submission, resuming any interrupted upload."""
import asyncio
import logging
import sys

import httpx

from ..core.config import settings
from ..core.errors import IntakeError
from .api import IntakeApiClient, upload_submission_video
from .chunking import LocalFile
from .state import JsonFileKeyValueStore, ResumableStateStore
from .uploader import ChunkedUploadConfig, UploadProgress


def print_progress(progress: UploadProgress) -> None:
    print(
        f"\r  {progress.percentage:3d}%  chunk {progress.current_chunk}/{progress.total_chunks}  "
        f"{progress.speed / (1024 * 1024):.2f} MB/s  ETA {progress.remaining_time:.0f}s",
        end="",
        flush=True
    )


async def run(file_path: str, submission_id: str) -> dict:
    file = LocalFile.from_path(file_path)
    store = ResumableStateStore(JsonFileKeyValueStore(settings.UPLOAD_STATE_PATH))
    config = ChunkedUploadConfig(on_progress=print_progress)
    async with httpx.AsyncClient() as client:
        api = IntakeApiClient(settings.API_BASE_URL, client)
        return await upload_submission_video(api, submission_id, file, store, config)


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) < 3 or argv[1] != "--submission":
        print("Usage:")
        print("  python -m clone_intake.client <file_path> --submission <submission_id>")
        return 1

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    file_path, submission_id = argv[0], argv[2]

    try:
        video = asyncio.run(run(file_path, submission_id))
    except (IntakeError, OSError, httpx.HTTPError) as e:
        print(f"\n✗ Upload failed: {e}")
        print(f"  Resume with: python -m clone_intake.client {file_path} --submission {submission_id}")
        return 1

    print(f"\n✓ Upload completed successfully!")
    print(f"  URL: {video['url']}")
    print(f"  Size: {video['size_bytes'] / (1024 * 1024):.2f} MB")
    return 0


if __name__ == "__main__":
    sys.exit(main())
