import base64
import uuid
from concurrent.futures import ThreadPoolExecutor

from signing_service.signers import load_public_key_pem, verify_signature


def create(client, algorithm="RSA", label="Device1"):
    r = client.post("/api/v0/devices", json={"algorithm": algorithm, "label": label})
    assert r.status_code == 201
    return r.json()["data"]


def sign(client, device_id, data):
    return client.post(f"/api/v0/devices/{device_id}/signatures", json={"data": data})


def test_health(client):
    r = client.get("/api/v0/health")
    assert r.status_code == 200
    assert r.json() == {"data": {"status": "pass", "version": "v0"}}


def test_create_device(client):
    device = create(client, "RSA", "Device1")
    assert device["label"] == "Device1"
    assert device["algorithm"] == "RSA"
    assert device["signature_counter"] == 0
    assert uuid.UUID(device["id"])
    assert device["public_key"].startswith("-----BEGIN PUBLIC KEY-----")


def test_create_device_lowercase_algorithm_reported_exact(client):
    device = create(client, "ecc", "")
    assert device["algorithm"] == "ECC"
    assert device["label"] == device["id"]


def test_create_device_missing_label(client):
    r = client.post("/api/v0/devices", json={"algorithm": "ECC"})
    assert r.status_code == 201
    data = r.json()["data"]
    assert data["label"] == data["id"]


def test_create_device_unsupported_algorithm(client):
    r = client.post("/api/v0/devices", json={"algorithm": "XYZ", "label": "x"})
    assert r.status_code == 400
    assert "unsupported algorithm" in r.json()["errors"][0]


def test_create_device_malformed_body(client):
    r = client.post("/api/v0/devices", content=b"{not json", headers={"Content-Type": "application/json"})
    assert r.status_code == 400
    assert r.json()["errors"]


def test_create_and_list_devices(client):
    create(client, "RSA", "Device1")
    create(client, "ECC", "Device2")
    r = client.get("/api/v0/devices")
    assert r.status_code == 200
    labels = sorted(d["label"] for d in r.json()["data"])
    assert labels == ["Device1", "Device2"]


def test_list_devices_empty(client):
    assert client.get("/api/v0/devices").json() == {"data": []}


def test_get_specific_device(client):
    create(client, "RSA", "Device1")
    device = create(client, "ECC", "Device2")
    r = client.get(f"/api/v0/devices/{device['id']}")
    assert r.status_code == 200
    assert r.json()["data"]["label"] == "Device2"
    assert r.json()["data"]["algorithm"] == "ECC"


def test_get_unknown_device(client):
    r = client.get(f"/api/v0/devices/{uuid.uuid4()}")
    assert r.status_code == 404
    assert "not found" in r.json()["errors"][0]


def test_get_invalid_device_id(client):
    r = client.get("/api/v0/devices/not-a-uuid")
    assert r.status_code == 400
    assert r.json() == {"errors": ["invalid device id"]}


def test_sign_and_verify(client):
    device = create(client, "RSA")
    r = sign(client, device["id"], "Hello World!")
    assert r.status_code == 200
    body = r.json()["data"]

    seed = base64.b64encode(uuid.UUID(device["id"]).bytes)
    assert body["signed_data"] == "0_Hello World!_" + base64.b64encode(seed).decode("ascii")

    public_key = load_public_key_pem(device["public_key"])
    assert verify_signature(public_key, body["signed_data"].encode(), body["signature"])

    r = client.get(f"/api/v0/devices/{device['id']}")
    assert r.json()["data"]["signature_counter"] == 1


def test_sign_chain(client):
    device = create(client, "ECC")
    first = sign(client, device["id"], "a").json()["data"]
    second = sign(client, device["id"], "b").json()["data"]
    assert second["signed_data"] == "1_b_" + base64.b64encode(first["signature"].encode()).decode("ascii")


def test_sign_unknown_device(client):
    r = sign(client, uuid.uuid4(), "data")
    assert r.status_code == 404


def test_sign_invalid_device_id(client):
    r = sign(client, "nope", "data")
    assert r.status_code == 400


def test_sign_missing_data(client):
    device = create(client, "ECC")
    r = client.post(f"/api/v0/devices/{device['id']}/signatures", json={})
    assert r.status_code == 400


def test_legacy_routes(client):
    r = client.post("/api/v0/new", json={"algorithm": "RSA", "label": "Device1"})
    assert r.status_code == 200
    device = r.json()["data"]

    r = client.post("/api/v0/sign", json={"id": device["id"], "data": "Hello World!"})
    assert r.status_code == 200
    assert r.json()["data"]["signed_data"].startswith("0_Hello World!_")


def test_legacy_sign_invalid_id(client):
    r = client.post("/api/v0/sign", json={"id": "nope", "data": "x"})
    assert r.status_code == 400


def test_method_not_allowed(client):
    r = client.get("/api/v0/new")
    assert r.status_code == 405
    assert r.json()["errors"]


def test_request_id_header(client):
    r = client.get("/api/v0/health", headers={"X-Request-ID": "req-123"})
    assert r.headers["X-Request-ID"] == "req-123"
    r = client.get("/api/v0/health")
    assert uuid.UUID(r.headers["X-Request-ID"])


def test_concurrent_sign_requests(client):
    device = create(client, "ECC")

    def do_sign(i):
        return sign(client, device["id"], f"msg-{i}").json()["data"]

    with ThreadPoolExecutor(max_workers=10) as pool:
        results = list(pool.map(do_sign, range(40)))

    counters = sorted(int(r["signed_data"].split("_", 1)[0]) for r in results)
    assert counters == list(range(40))
    r = client.get(f"/api/v0/devices/{device['id']}")
    assert r.json()["data"]["signature_counter"] == 40


def post_raw(client, path, body: bytes):
    return client.post(path, content=body, headers={"Content-Type": "application/json"})


def test_sign_rejects_lone_surrogate(client):
    device = create(client, "ECC")
    r = post_raw(client, f"/api/v0/devices/{device['id']}/signatures", b'{"data": "\\ud800"}')
    assert r.status_code == 400
    assert r.json()["errors"]
    r = client.get(f"/api/v0/devices/{device['id']}")
    assert r.json()["data"]["signature_counter"] == 0


def test_legacy_sign_rejects_lone_surrogate(client):
    device = create(client, "ECC")
    body = ('{"id": "%s", "data": "\\ud800"}' % device["id"]).encode("ascii")
    r = post_raw(client, "/api/v0/sign", body)
    assert r.status_code == 400
    assert r.json()["errors"]


def test_create_rejects_lone_surrogate_label(client, registry):
    r = post_raw(client, "/api/v0/devices", b'{"algorithm": "ECC", "label": "\\ud800"}')
    assert r.status_code == 400
    assert r.json()["errors"]
    assert len(registry) == 0


def test_create_accepts_non_ascii_label(client):
    device = create(client, "ECC", "Kasse ü \U0001F600")
    assert device["label"] == "Kasse ü \U0001F600"


def test_error_envelope_shape(client):
    r = client.post("/api/v0/devices", json={"algorithm": "XYZ"})
    assert set(r.json()) == {"errors"}
