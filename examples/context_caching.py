"""
Answer questions about a long video through a Gemini context cache.

Download the sample first:
  curl -O https://storage.googleapis.com/generativeai-downloads/data/Sherlock_Jr_FullMovie.mp4
"""

import asyncio
import sys

from google import genai
from google.genai import types

from genai_bridge import GeminiLLM, get_api_key, wait_for_file

MODEL = "gemini-2.0-flash-001"


async def main(video_path: str) -> None:
    client = genai.Client(api_key=get_api_key())

    uploaded = await client.aio.files.upload(
        file=video_path,
        config=types.UploadFileConfig(display_name="Sherlock Jr. video", mime_type="video/mp4"),
    )
    video = await wait_for_file(client, uploaded.name, timeout=600)

    cache = await client.aio.caches.create(
        model=MODEL,
        config=types.CreateCachedContentConfig(
            display_name="sherlock jr",
            ttl="300s",
            system_instruction=(
                "You are an expert video analyzer, and your job is to answer "
                "the user's query based on the video file you have access to."
            ),
            contents=[
                types.Content(
                    role="user",
                    parts=[types.Part.from_uri(file_uri=video.uri, mime_type=video.mime_type)],
                )
            ],
        ),
    )

    async with GeminiLLM.from_client(MODEL, client) as llm:
        llm.use_cached_content(cache)
        response = await llm.chat(
            [
                {
                    "role": "user",
                    "content": "Introduce different characters in the movie by describing "
                    "their personality, looks, and names. Also list the timestamps "
                    "they were introduced for the first time.",
                }
            ]
        )
        print(response.content if not response.is_error else response.error)


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else "Sherlock_Jr_FullMovie.mp4"))
