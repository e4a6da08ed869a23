import threading
from concurrent.futures import ThreadPoolExecutor

from bucketstore.storage.registry import BackendRegistry, RegistryEntry, get_registry, reset_registry


def test_register_and_lookup(registry: BackendRegistry) -> None:
    assert registry.register("s3", "photos", "cdn.example.com") is True
    assert registry.lookup("s3", "photos") == ("cdn.example.com", True), "Registered bucket should be found"


def test_lookup_unknown_scheme(registry: BackendRegistry) -> None:
    assert registry.lookup("s3", "photos") == ("", False), "Unknown scheme should be a miss"
    registry.register("minio", "photos", "localhost:9000")
    assert registry.lookup("s3", "photos") == ("", False), "Other schemes should not leak into lookup"


def test_lookup_unknown_bucket(registry: BackendRegistry) -> None:
    registry.register("s3", "photos", "cdn.example.com")
    assert registry.lookup("s3", "videos") == ("", False), "Unknown bucket should be a miss"


def test_first_registration_per_scheme_wins(registry: BackendRegistry) -> None:
    assert registry.register("s3", "photos", "cdn.example.com") is True
    assert registry.register("s3", "videos", "video.example.com") is False

    assert registry.lookup("s3", "photos") == ("cdn.example.com", True)
    assert registry.lookup("s3", "videos") == ("", False), "Later buckets under a taken scheme stay invisible"
    assert registry.entries("s3") == (RegistryEntry("photos", "cdn.example.com"),)


def test_same_bucket_reregistration_keeps_first_host(registry: BackendRegistry) -> None:
    registry.register("qiniu", "assets", "a.example.com")
    registry.register("qiniu", "assets", "b.example.com")
    assert registry.lookup("qiniu", "assets") == ("a.example.com", True)


def test_append_mode_makes_every_bucket_discoverable() -> None:
    registry = BackendRegistry(append_existing=True)
    registry.register("s3", "photos", "cdn.example.com")
    registry.register("s3", "videos", "video.example.com")
    registry.register("s3", "photos", "other.example.com")

    assert registry.lookup("s3", "photos") == ("cdn.example.com", True), "First matching entry should win"
    assert registry.lookup("s3", "videos") == ("video.example.com", True)
    assert len(registry.entries("s3")) == 3


def test_introspection(registry: BackendRegistry) -> None:
    registry.register("s3", "photos", "cdn.example.com")
    registry.register("minio", "docs", "localhost:9000")

    assert "s3" in registry
    assert "qiniu" not in registry
    assert len(registry) == 2
    assert sorted(registry.schemes()) == ["minio", "s3"]
    assert registry.entries("qiniu") == ()

    registry.clear()
    assert len(registry) == 0
    assert registry.lookup("s3", "photos") == ("", False)


def test_concurrent_registration_of_distinct_schemes(registry: BackendRegistry) -> None:
    count = 64
    barrier = threading.Barrier(count)

    def register(i: int) -> bool:
        barrier.wait()
        return registry.register(f"scheme{i}", f"bucket{i}", f"host{i}.example.com")

    with ThreadPoolExecutor(max_workers=count) as pool:
        results = list(pool.map(register, range(count)))

    assert all(results), "Every distinct scheme should be stored"
    assert len(registry) == count
    for i in range(count):
        assert registry.lookup(f"scheme{i}", f"bucket{i}") == (f"host{i}.example.com", True)


def test_concurrent_registration_same_scheme_keeps_exactly_one(registry: BackendRegistry) -> None:
    count = 32
    barrier = threading.Barrier(count)

    def register(i: int) -> bool:
        barrier.wait()
        return registry.register("s3", f"bucket{i}", f"host{i}")

    with ThreadPoolExecutor(max_workers=count) as pool:
        results = list(pool.map(register, range(count)))

    assert results.count(True) == 1, "Exactly one registration should win the scheme"
    assert len(registry.entries("s3")) == 1


def test_concurrent_append_loses_no_entries() -> None:
    registry = BackendRegistry(append_existing=True)
    count = 32
    barrier = threading.Barrier(count)

    def register(i: int) -> None:
        barrier.wait()
        registry.register("s3", f"bucket{i}", f"host{i}")

    with ThreadPoolExecutor(max_workers=count) as pool:
        list(pool.map(register, range(count)))

    assert len(registry.entries("s3")) == count
    for i in range(count):
        assert registry.lookup("s3", f"bucket{i}") == (f"host{i}", True)


def test_default_registry_is_shared_and_resettable() -> None:
    first = get_registry()
    assert get_registry() is first

    first.register("s3", "photos", "cdn.example.com")
    replacement = reset_registry()
    assert get_registry() is replacement
    assert replacement.lookup("s3", "photos") == ("", False)

    custom = BackendRegistry(append_existing=True)
    assert reset_registry(custom) is custom
    assert get_registry() is custom
