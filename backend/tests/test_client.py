import httpx
import pytest

from sketchpad.client import DrawingsClient
from sketchpad.core.errors import DrawingValidationError, TransportError
from sketchpad.models.drawing import DrawingCreate, DrawingUpdate

IMAGE = "data:image/png;base64,AAA="


@pytest.fixture()
def api(client):
    return DrawingsClient(client=client)


def test_crud_through_client(api):
    created = api.create(DrawingCreate(name="Cat", image_data=IMAGE, metadata={"width": 2}))

    assert api.get(created.id) == created
    assert [d.id for d in api.list()] == [created.id]

    updated = api.update(created.id, DrawingUpdate(name="Dog"))
    assert updated.name == "Dog"
    assert updated.metadata == {"width": 2}

    assert api.delete(created.id) is True
    assert api.get(created.id) is None
    assert api.delete(created.id) is False
    assert api.update(created.id, DrawingUpdate(name="gone")) is None


def test_update_sends_explicit_nulls(api):
    created = api.create(DrawingCreate(image_data=IMAGE, original_image=IMAGE))

    updated = api.update(created.id, DrawingUpdate(original_image=None))

    assert updated.original_image is None
    assert updated.image_data == IMAGE


def test_validation_error_is_raised(api):
    # Skip local validation so the server is the one rejecting the payload.
    payload = DrawingCreate.model_construct(image_data="")

    with pytest.raises(DrawingValidationError) as excinfo:
        api.create(payload)

    assert excinfo.value.message == "Invalid drawing data"
    assert excinfo.value.errors


def test_network_failure_is_transport_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    api = DrawingsClient(client=httpx.Client(base_url="http://drawings.test", transport=httpx.MockTransport(handler)))

    with pytest.raises(TransportError):
        api.list()


def test_server_error_is_transport_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(500, json={"detail": "Internal server error"}))
    api = DrawingsClient(client=httpx.Client(base_url="http://drawings.test", transport=transport))

    with pytest.raises(TransportError):
        api.get("abc")
