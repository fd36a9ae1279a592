import os
import sys
import json
import base64
from time import time
from helpers.logging import logger
from helpers.responses import get_response, error_response

_MOUNT_PATH = os.environ.get("mount_path", "/mnt/python")
MODEL_DIR = os.path.join(_MOUNT_PATH, "model")
PYTHON_PACKAGES = os.path.join(
    _MOUNT_PATH, "tensorflow", "lib", "python3.10", "site-packages"
)

# tensorflow, requests and their dependencies live in the virtualenv on EFS,
# so they are imported only once the model is known to be there
sys.path.append(PYTHON_PACKAGES)

MIN_SCORE = float(os.environ.get("min_score", "0.1"))
MAX_RESULTS = int(os.environ.get("max_results", "10"))
DOWNLOAD_TIMEOUT = 30

_detector = None


class ModelNotReady(Exception):
    pass


class DownloadError(Exception):
    pass


def parse_event(event: dict) -> str:
    """Image url from a direct invocation or an API Gateway proxy event."""
    if not isinstance(event, dict):
        raise ValueError("Event must be a JSON object.")

    url = event.get("url")
    if url is None and event.get("body"):
        body = event["body"]
        try:
            if event.get("isBase64Encoded") and isinstance(body, str):
                body = base64.b64decode(body).decode("utf-8")
            body = json.loads(body) if isinstance(body, str) else body
        except ValueError:
            raise ValueError("Request body must be a JSON string.")
        url = body.get("url") if isinstance(body, dict) else None

    if not url:
        raise ValueError("Missing 'url' in request.")
    if not isinstance(url, str) or not url.startswith(("http://", "https://")):
        raise ValueError(f"Invalid url: {url}")

    return url


def get_detector():
    global _detector
    if _detector is not None:
        return _detector

    if not os.path.isdir(MODEL_DIR):
        raise ModelNotReady(f"Model not found at {MODEL_DIR}")
    try:
        import tensorflow as tf
    except ImportError as err:
        raise ModelNotReady(f"Unable to import tensorflow: {err}")

    logger.info("Loading model from %s", MODEL_DIR)
    _detector = tf.saved_model.load(MODEL_DIR).signatures["default"]
    return _detector


def download_image(url: str) -> bytes:
    import requests

    try:
        response = requests.get(url, timeout=DOWNLOAD_TIMEOUT)
        response.raise_for_status()
    except requests.RequestException as err:
        raise DownloadError(str(err))

    return response.content


def to_tensor(content: bytes):
    import tensorflow as tf

    image = tf.image.decode_image(content, channels=3, expand_animations=False)
    image = tf.image.convert_image_dtype(image, tf.float32)
    return image[tf.newaxis, ...]


def format_detections(
    result: dict, min_score: float = MIN_SCORE, max_results: int = MAX_RESULTS
) -> list[dict]:
    detections = []
    for entity, score, box in zip(
        result["detection_class_entities"],
        result["detection_scores"],
        result["detection_boxes"],
    ):
        score = float(score)
        if score < min_score:
            continue
        if isinstance(entity, bytes):
            entity = entity.decode("utf-8")
        detections.append(
            {
                "entity": entity,
                "score": score,
                "box": [float(x) for x in box],
            }
        )

    detections.sort(key=lambda x: x["score"], reverse=True)
    return detections[:max_results]


def lambda_handler(event: dict, context) -> dict:
    logger.debug("Event: %s", json.dumps(event, default=str))

    try:
        url = parse_event(event)
    except ValueError as err:
        logger.info("Invalid input: %s", err)
        return error_response(str(err), status_code=400)

    try:
        detector = get_detector()
    except ModelNotReady as err:
        logger.error("Model not ready: %s", err)
        return error_response(
            "The model runtime is not ready yet. Check the CodeBuild project.",
            status_code=503,
        )

    try:
        content = download_image(url)
    except DownloadError as err:
        logger.warning("Unable to download %s: %s", url, err)
        return error_response(f"Unable to download image: {err}", status_code=400)

    try:
        start = time()
        result = detector(to_tensor(content))
        inference_time = time() - start
        result = {key: value.numpy() for key, value in result.items()}
    except Exception as err:
        logger.exception(err)
        return error_response("Unable to run inference", status_code=500)

    detections = format_detections(result)
    logger.info("Found %d objects in %.3fs", len(detections), inference_time)

    return get_response(
        body={"detections": detections, "inference_time": inference_time}
    )
