import os
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from files.backend.zip_audio_dir import stream_audio_zip

PORT = 3000
HOST = "0.0.0.0"
AUDIO_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "audio")


# the audio directory is passed in so tests can point the app at a temp folder
def create_app(audio_dir: str = AUDIO_DIR) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        print(f"🎵 Audio provider server running at http://localhost:{PORT}")
        print(f"📁 Audio files directory: {audio_dir}")
        yield

    app = FastAPI(lifespan=lifespan)

    @app.get("/health")
    async def health():
        return {"status": "ok", "message": "Audio server is running"}

    # streams every file under audio_dir back as audio.zip
    @app.get("/provide/audio")
    async def provide_audio():
        return await stream_audio_zip(audio_dir)

    return app


app = create_app(AUDIO_DIR)


def main():
    uvicorn.run(app, host=HOST, port=PORT)


if __name__ == "__main__":
    main()
