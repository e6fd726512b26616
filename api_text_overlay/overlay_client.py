"""
Small client for the Text Overlay API.

    python api_text_overlay/overlay_client.py photo.png "Line one\\nLine two" -o output.png
"""

import argparse
import base64
import os

import requests

DEFAULT_URL = os.getenv("OVERLAY_API_URL", "http://localhost:3000")

MIME_TYPES = {".png": "image/png", ".jpg": "image/jpeg", ".jpeg": "image/jpeg", ".webp": "image/webp"}


def check_health(base_url: str = DEFAULT_URL) -> dict:
    response = requests.get(f"{base_url}/health", timeout=10)
    response.raise_for_status()
    return response.json()


def preview_text(text: str, base_url: str = DEFAULT_URL, options: dict = None) -> dict:
    payload = {"text": text}
    if options:
        payload["options"] = options
    response = requests.post(f"{base_url}/api/preview-text", json=payload, timeout=30)
    response.raise_for_status()
    return response.json()["data"]


def add_text_overlay(image_path: str, text: str, base_url: str = DEFAULT_URL,
                     position: str = "bottom", font_size: int = None) -> dict:
    """Upload image_path with a caption and return the API's data block."""
    mime = MIME_TYPES.get(os.path.splitext(image_path)[1].lower(), "image/png")
    data = {"text": text, "position": position}
    if font_size:
        data["fontSize"] = str(font_size)

    with open(image_path, "rb") as f:
        files = {"avatar": (os.path.basename(image_path), f, mime)}
        response = requests.post(f"{base_url}/api/text-overlay", files=files, data=data, timeout=60)
    response.raise_for_status()
    return response.json()["data"]


def save_base64_image(image_base64: str, output_path: str) -> str:
    with open(output_path, "wb") as f:
        f.write(base64.b64decode(image_base64))
    return output_path


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Send an image and caption to the Text Overlay API")
    parser.add_argument("image")
    parser.add_argument("text")
    parser.add_argument("-o", "--output", default="output.png")
    parser.add_argument("--position", default="bottom", choices=["top", "center", "bottom"])
    parser.add_argument("--font-size", type=int)
    parser.add_argument("--url", default=DEFAULT_URL)
    args = parser.parse_args()

    print(check_health(args.url))

    for line in preview_text(args.text, args.url)["preview"]:
        print(f'{line["lineNumber"]}: "{line["text"]}" ({line["wordCount"]} words, {line["characterCount"]} chars)')

    result = add_text_overlay(args.image, args.text, args.url, args.position, args.font_size)
    print(f"Image saved as: {save_base64_image(result['imageBase64'], args.output)}")
