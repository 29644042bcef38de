"""
Upload API endpoint tests.

Runs the real Pillow processor and a temporary local blob store.
"""

from types import SimpleNamespace

import pytest
from httpx import AsyncClient
from PIL import Image
from starlette.requests import Request

from catalog_api.api.middleware import authenticated_user_id, route_template
from catalog_api.imaging import get_image_processor
from catalog_api.imaging.protocol import ImageDecodeError
from catalog_api.main import app


def stored_dimensions(test_storage, path: str):
    with Image.open(test_storage.get_local_path(path)) as image:
        return image.size


@pytest.mark.api
async def test_upload_resizes_to_800_wide(client: AsyncClient, auth_headers: dict, image_bytes, test_storage):
    response = await client.post(
        "/upload-image",
        files={"image": ("photo.jpg", image_bytes(1600, 1200, "JPEG"), "image/jpeg")},
        headers=auth_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Image uploaded successfully"
    data = body["data"]
    assert data["path"].startswith("images/")
    assert data["path"].endswith("_photo.jpg")
    assert data["url"] == f"/storage/{data['path']}"
    assert stored_dimensions(test_storage, data["path"]) == (800, 600)


@pytest.mark.api
async def test_upload_upscales_small_images(client: AsyncClient, auth_headers: dict, image_bytes, test_storage):
    response = await client.post(
        "/upload-image",
        files={"image": ("tiny.png", image_bytes(100, 50, "PNG"), "image/png")},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert stored_dimensions(test_storage, response.json()["data"]["path"]) == (800, 400)


@pytest.mark.api
async def test_upload_links_product(client: AsyncClient, auth_headers: dict, image_bytes):
    created = await client.post(
        "/products",
        data={"name": "Lamp", "price": "30", "stock_quantity": "2"},
        headers=auth_headers,
    )
    product_id = created.json()["data"]["id"]

    response = await client.post(
        "/upload-image",
        data={"product_id": str(product_id)},
        files={"image": ("lamp.jpg", image_bytes(), "image/jpeg")},
        headers=auth_headers,
    )

    assert response.status_code == 200
    product = (await client.get(f"/products/{product_id}")).json()["data"]
    assert product["image"] == response.json()["data"]["url"]


@pytest.mark.api
@pytest.mark.parametrize("product_id", [
    "9999",
    "not-a-number",
    "9223372036854775808",
    "99999999999999999999999",
])
async def test_upload_with_unknown_product_still_succeeds(
    client: AsyncClient, auth_headers: dict, image_bytes, product_id
):
    response = await client.post(
        "/upload-image",
        data={"product_id": product_id},
        files={"image": ("photo.jpg", image_bytes(), "image/jpeg")},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.json()["data"]["path"].endswith("_photo.jpg")


@pytest.mark.api
async def test_upload_one_megabyte_jpeg_is_resized(client: AsyncClient, auth_headers: dict, image_bytes, test_storage):
    photo = image_bytes(2400, 1800, "JPEG")
    photo += b"\0" * (1024 * 1024 - len(photo))

    response = await client.post(
        "/upload-image",
        files={"image": ("camera.jpg", photo, "image/jpeg")},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert stored_dimensions(test_storage, response.json()["data"]["path"]) == (800, 600)


@pytest.mark.api
@pytest.mark.parametrize("padding, status_code", [(0, 200), (1, 422)])
async def test_upload_size_limit_is_inclusive(
    client: AsyncClient, auth_headers: dict, image_bytes, padding, status_code
):
    data = image_bytes(fmt="PNG")
    data += b"\0" * (2048 * 1024 - len(data) + padding)

    response = await client.post(
        "/upload-image",
        files={"image": ("limit.png", data, "image/png")},
        headers=auth_headers,
    )

    assert response.status_code == status_code


@pytest.mark.api
async def test_upload_too_large(client: AsyncClient, auth_headers: dict, image_bytes):
    data = image_bytes(fmt="PNG") + b"\0" * (3 * 1024 * 1024)

    response = await client.post(
        "/upload-image",
        files={"image": ("huge.png", data, "image/png")},
        headers=auth_headers,
    )

    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Validation Error"
    assert body["data"] == {"image": ["The image field must not be greater than 2048 kilobytes."]}


@pytest.mark.api
async def test_upload_rejects_non_image(client: AsyncClient, auth_headers: dict):
    response = await client.post(
        "/upload-image",
        files={"image": ("notes.jpg", b"this is not an image", "image/jpeg")},
        headers=auth_headers,
    )

    assert response.status_code == 422
    assert "The image field must be an image." in response.json()["data"]["image"]


@pytest.mark.api
async def test_upload_missing_file(client: AsyncClient, auth_headers: dict):
    response = await client.post("/upload-image", data={"product_id": "1"}, headers=auth_headers)

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "No image provided", "data": None}


@pytest.mark.api
async def test_upload_missing_auth(client: AsyncClient, image_bytes):
    response = await client.post(
        "/upload-image",
        files={"image": ("photo.jpg", image_bytes(), "image/jpeg")},
    )

    assert response.status_code == 401


class BrokenProcessor:
    def detect_format(self, data: bytes):
        return "jpeg"

    def scale_to_width(self, data: bytes, width: int) -> bytes:
        raise ImageDecodeError("image file is truncated")


@pytest.mark.api
async def test_decode_failure_returns_500_and_cleans_up(
    client: AsyncClient, auth_headers: dict, image_bytes, test_storage
):
    app.dependency_overrides[get_image_processor] = lambda: BrokenProcessor()

    response = await client.post(
        "/upload-image",
        files={"image": ("photo.jpg", image_bytes(), "image/jpeg")},
        headers=auth_headers,
    )

    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Image could not be processed", "data": None}
    images_dir = test_storage.get_local_path("images")
    assert not images_dir.exists() or list(images_dir.iterdir()) == []


# ============================================================================
# Ambient endpoints
# ============================================================================

@pytest.mark.api
async def test_health(client: AsyncClient):
    response = await client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["status"] == "healthy"
    assert body["data"]["database"] == "ok"


@pytest.mark.api
async def test_metrics_exposes_upload_counter(client: AsyncClient, auth_headers: dict, image_bytes):
    await client.post(
        "/upload-image",
        files={"image": ("photo.jpg", image_bytes(), "image/jpeg")},
        headers=auth_headers,
    )

    response = await client.get("/metrics")

    assert response.status_code == 200
    assert "image_uploads_total" in response.text
    assert "http_requests_total" in response.text


@pytest.mark.api
async def test_metrics_label_requests_by_route_template(client: AsyncClient):
    await client.get("/products/424242")
    await client.get("/no-such-route")

    response = await client.get("/metrics")

    assert 'endpoint="/products/{product_id}"' in response.text
    assert 'endpoint="<unmatched>"' in response.text
    assert "/products/424242" not in response.text
    assert "no-such-route" not in response.text


@pytest.mark.unit
def test_route_template_and_user_id_from_scope():
    matched = Request({"type": "http", "route": SimpleNamespace(path="/products/{product_id}")})
    matched.state.user_id = 7
    unmatched = Request({"type": "http"})

    assert route_template(matched) == "/products/{product_id}"
    assert authenticated_user_id(matched) == 7
    assert route_template(unmatched) == "<unmatched>"
    assert authenticated_user_id(unmatched) is None


@pytest.mark.api
async def test_trace_id_is_echoed(client: AsyncClient):
    response = await client.get("/health", headers={"X-Trace-ID": "trace-abc"})

    assert response.headers["X-Trace-ID"] == "trace-abc"
    assert response.headers["X-Correlation-ID"] == "trace-abc"


@pytest.mark.api
async def test_unknown_route_uses_envelope(client: AsyncClient):
    response = await client.get("/nope")

    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Not Found", "data": None}
