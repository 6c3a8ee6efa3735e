import os

import pytest


class FakeStore:
    """In-memory stand-in for :class:`transcriber.storage_gateway.GcsStore`."""

    def __init__(self):
        self.objects = {}
        self.calls = []
        self.failing_deletes = set()

    def put(self, bucket, name, data):
        self.objects[(bucket, name)] = data.encode() if isinstance(data, str) else data

    def read(self, bucket, name):
        return self.objects[(bucket, name)].decode()

    def download(self, bucket, name, directory):
        self.calls.append(("download", bucket, name))
        os.makedirs(directory, exist_ok=True)
        path = os.path.join(directory, os.path.basename(name))
        with open(path, "wb") as f:
            f.write(self.objects[(bucket, name)])
        return path

    def upload(self, local_path, bucket, name=None, *, content_type=None):
        name = name or os.path.basename(local_path)
        self.calls.append(("upload", bucket, name))
        with open(local_path, "rb") as f:
            self.objects[(bucket, name)] = f.read()
        return f"gs://{bucket}/{name}"

    def delete(self, bucket, name):
        self.calls.append(("delete", bucket, name))
        if (bucket, name) in self.failing_deletes:
            raise RuntimeError(f"cannot delete {name}")
        del self.objects[(bucket, name)]


@pytest.fixture
def store():
    return FakeStore()
