import json


def get_response(body: dict | None = None, status_code: int = 200) -> dict:
    return {
        "isBase64Encoded": False,
        "statusCode": status_code,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body, default=str) if body else "",
    }


def error_response(message: str, status_code: int = 400) -> dict:
    return get_response(body={"error": message}, status_code=status_code)
