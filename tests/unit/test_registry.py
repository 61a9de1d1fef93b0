"""
Unit tests for schema registry.

Tests cover:
- Descriptor creation and validation
- Version assignment
- Current-version resolution
- Version and identity removal
- Storage failure wrapping
"""

import pytest

from schemastore_server.errors import (
    RegistryError,
    SchemaNotFoundError,
    StorageError,
    ValidationError,
)
from schemastore_server.schema import (
    SchemaDescriptor,
    SchemaId,
    SchemaRegistry,
    SchemaStorage,
    SchemaType,
)
from schemastore_server.store import InMemoryTable


class FailingTable(InMemoryTable):
    """Table whose writes fail once armed."""

    def __init__(self):
        super().__init__()
        self.fail_writes = False

    def put(self, key, value):
        if self.fail_writes:
            raise StorageError("disk full")
        super().put(key, value)


@pytest.fixture
def table():
    return InMemoryTable()


@pytest.fixture
def registry(table):
    return SchemaRegistry(SchemaStorage(table))


@pytest.fixture
def orders():
    return SchemaId("default", "orders")


def descriptor(schema_id, name="Orders", description="Order events", type=SchemaType.AVRO):
    return SchemaDescriptor(id=schema_id, name=name, description=description, type=type)


class TestCreate:
    """Tests for SchemaRegistry.create."""

    def test_create_then_has_schema(self, registry, orders):
        """Created id exists and has no versions."""
        registry.create(descriptor(orders))

        assert registry.has_schema(orders) is True
        assert registry.get_versions(orders) == set()

    def test_unknown_id_has_no_schema(self, registry, orders):
        assert registry.has_schema(orders) is False

    @pytest.mark.parametrize(
        "kwargs, message",
        [
            ({"name": ""}, "Schema name must be specified."),
            ({"description": ""}, "Schema description must be specified."),
            ({"type": "thrift"}, "Schema type 'thrift' is invalid."),
        ],
    )
    def test_invalid_descriptor_rejected(self, registry, table, orders, kwargs, message):
        """Validation errors leave nothing behind."""
        with pytest.raises(ValidationError, match=message):
            registry.create(descriptor(orders, **kwargs))

        assert registry.has_schema(orders) is False
        assert len(table) == 0

    def test_empty_id_rejected(self, registry):
        with pytest.raises(ValidationError, match="Schema id must be specified."):
            registry.create(descriptor(SchemaId("default", "")))

    def test_recreate_replaces_metadata_keeps_versions(self, registry, orders):
        """Re-creating an id overwrites metadata only."""
        registry.create(descriptor(orders))
        registry.add(orders, b"v1")
        registry.add(orders, b"v2")

        registry.create(descriptor(orders, name="Orders v2", type=SchemaType.PROTOBUF_DESC))

        entry = registry.get_entry(orders)
        assert entry.name == "Orders v2"
        assert entry.type == SchemaType.PROTOBUF_DESC
        assert registry.get_versions(orders) == {1, 2}


class TestAdd:
    """Tests for SchemaRegistry.add."""

    def test_versions_are_sequential(self, registry, orders):
        """N adds yield 1..N in order."""
        registry.create(descriptor(orders))

        versions = [registry.add(orders, b"content %d" % i) for i in range(5)]

        assert versions == [1, 2, 3, 4, 5]
        assert registry.get_versions(orders) == {1, 2, 3, 4, 5}

    def test_add_to_unknown_id_fails(self, registry, table, orders):
        """No descriptor means SchemaNotFoundError and no record written."""
        with pytest.raises(SchemaNotFoundError, match="does not exist"):
            registry.add(orders, b"content")

        assert len(table) == 0

    @pytest.mark.parametrize("content", [b"", None])
    def test_empty_content_rejected(self, registry, orders, content):
        registry.create(descriptor(orders))

        with pytest.raises(ValidationError, match="content must be provided"):
            registry.add(orders, content)

        assert registry.get_versions(orders) == set()

    def test_versions_not_reused_after_removing_latest(self, registry, orders):
        """Removing the latest version does not free its number."""
        registry.create(descriptor(orders))
        registry.add(orders, b"v1")
        registry.add(orders, b"v2")

        registry.remove_version(orders, 2)

        assert registry.add(orders, b"v3") == 3
        assert registry.get_versions(orders) == {1, 3}

    def test_failed_add_does_not_advance_counter(self, orders):
        """A storage failure during add leaves the next version unchanged."""
        table = FailingTable()
        registry = SchemaRegistry(SchemaStorage(table))
        registry.create(descriptor(orders))
        registry.add(orders, b"v1")

        table.fail_writes = True
        with pytest.raises(RegistryError, match="disk full"):
            registry.add(orders, b"v2")

        table.fail_writes = False
        assert registry.add(orders, b"v2") == 2

    def test_ids_are_independent(self, registry, orders):
        other = SchemaId("default", "payments")
        registry.create(descriptor(orders))
        registry.create(descriptor(other))

        registry.add(orders, b"a")
        registry.add(orders, b"b")

        assert registry.add(other, b"c") == 1


class TestGetEntry:
    """Tests for SchemaRegistry.get_entry."""

    def test_current_is_max_version(self, registry, orders):
        """Without a version, the highest stored version is returned."""
        registry.create(descriptor(orders))
        registry.add(orders, b"one")
        registry.add(orders, b"two")
        registry.add(orders, b"three")
        registry.remove_version(orders, 3)

        entry = registry.get_entry(orders)

        assert entry.version == max(registry.get_versions(orders)) == 2
        assert entry.content == b"two"
        assert entry.versions == {1, 2}
        assert entry.name == "Orders"
        assert entry.description == "Order events"

    def test_specific_version(self, registry, orders):
        registry.create(descriptor(orders))
        registry.add(orders, b"one")
        registry.add(orders, b"two")

        entry = registry.get_entry(orders, 1)

        assert entry.version == 1
        assert entry.content == b"one"
        assert entry.current == 2

    def test_unknown_id(self, registry, orders):
        with pytest.raises(SchemaNotFoundError):
            registry.get_entry(orders)
        with pytest.raises(SchemaNotFoundError):
            registry.get_entry(orders, 1)

    def test_no_versions(self, registry, orders):
        """Descriptor without content has no current entry."""
        registry.create(descriptor(orders))

        with pytest.raises(SchemaNotFoundError, match="does not have any versions"):
            registry.get_entry(orders)

    def test_missing_version(self, registry, orders):
        registry.create(descriptor(orders))
        registry.add(orders, b"one")

        with pytest.raises(SchemaNotFoundError, match="does not have version 5"):
            registry.get_entry(orders, 5)

    def test_entry_to_dict_encodes_content(self, registry, orders):
        registry.create(descriptor(orders))
        registry.add(orders, b"\x00\x01")

        data = registry.get_entry(orders).to_dict()

        assert data["specification"] == "AAE="
        assert data["versions"] == [1]
        assert data["type"] == "avro"


class TestRemoval:
    """Tests for remove_version and delete_identity."""

    def test_remove_version_removes_exactly_one(self, registry, orders):
        other = SchemaId("default", "payments")
        registry.create(descriptor(orders))
        registry.create(descriptor(other))
        for _ in range(3):
            registry.add(orders, b"x")
            registry.add(other, b"y")
        before = registry.get_versions(orders)

        registry.remove_version(orders, 2)

        assert registry.get_versions(orders) == before - {2}
        assert registry.get_versions(other) == {1, 2, 3}
        assert registry.has_schema(orders)

    def test_remove_missing_version(self, registry, orders):
        registry.create(descriptor(orders))
        registry.add(orders, b"x")

        with pytest.raises(SchemaNotFoundError, match="does not have version 9"):
            registry.remove_version(orders, 9)

    def test_remove_version_of_unknown_id(self, registry, orders):
        with pytest.raises(SchemaNotFoundError, match="does not exist"):
            registry.remove_version(orders, 1)

    def test_delete_identity(self, registry, table, orders):
        """Deleting an identity removes every trace of it."""
        registry.create(descriptor(orders))
        registry.add(orders, b"a")
        registry.add(orders, b"b")

        registry.delete_identity(orders)

        assert registry.has_schema(orders) is False
        with pytest.raises(SchemaNotFoundError):
            registry.get_versions(orders)
        assert len(table) == 0

    def test_recreated_identity_starts_at_one(self, registry, orders):
        registry.create(descriptor(orders))
        registry.add(orders, b"a")
        registry.delete_identity(orders)

        registry.create(descriptor(orders))

        assert registry.add(orders, b"b") == 1

    def test_delete_unknown_identity_is_noop(self, registry, orders):
        registry.delete_identity(orders)

        assert registry.has_schema(orders) is False

    def test_storage_failure_is_wrapped(self, orders):
        table = FailingTable()
        registry = SchemaRegistry(SchemaStorage(table))
        table.fail_writes = True

        with pytest.raises(RegistryError) as exc_info:
            registry.create(descriptor(orders))

        assert isinstance(exc_info.value.cause, StorageError)
        assert exc_info.value.code == "REGISTRY_ERROR"


class TestSchemaType:
    """Tests for SchemaType.from_str."""

    @pytest.mark.parametrize(
        "tag, expected",
        [
            ("avro", SchemaType.AVRO),
            ("AVRO", SchemaType.AVRO),
            ("protobuf-desc", SchemaType.PROTOBUF_DESC),
            ("PROTOBUF_BINARY", SchemaType.PROTOBUF_BINARY),
            (" copybook ", SchemaType.COPYBOOK),
        ],
    )
    def test_recognized(self, tag, expected):
        assert SchemaType.from_str(tag) is expected

    @pytest.mark.parametrize("tag", ["json", "", None, "protobuf"])
    def test_unrecognized(self, tag):
        with pytest.raises(ValueError, match="Invalid schema type"):
            SchemaType.from_str(tag)


class PartialDeleteTable(InMemoryTable):
    """Table whose deletes fail after a number of successful ones, once armed."""

    def __init__(self):
        super().__init__()
        self.deletes_left = None

    def delete(self, key):
        if self.deletes_left is not None:
            if self.deletes_left == 0:
                raise StorageError("io error")
            self.deletes_left -= 1
        super().delete(key)


class TestInterruptedDelete:
    """A delete_identity that fails partway leaves nothing a later create can see."""

    def test_recreate_after_failed_delete_starts_empty(self, orders):
        table = PartialDeleteTable()
        registry = SchemaRegistry(SchemaStorage(table))
        registry.create(descriptor(orders))
        registry.add(orders, b"old1")
        registry.add(orders, b"old2")

        # Descriptor delete succeeds, first version delete fails
        table.deletes_left = 1
        with pytest.raises(RegistryError):
            registry.delete_identity(orders)
        table.deletes_left = None

        assert registry.has_schema(orders) is False

        registry.create(descriptor(orders))

        assert registry.get_versions(orders) == set()
        with pytest.raises(SchemaNotFoundError, match="does not have any versions"):
            registry.get_entry(orders)
        assert registry.add(orders, b"new") == 1
        assert registry.get_entry(orders).content == b"new"

    def test_failed_purge_leaves_identity_absent(self, orders):
        table = PartialDeleteTable()
        registry = SchemaRegistry(SchemaStorage(table))
        registry.create(descriptor(orders))
        registry.add(orders, b"old")
        table.deletes_left = 1
        with pytest.raises(RegistryError):
            registry.delete_identity(orders)

        table.deletes_left = 0
        with pytest.raises(RegistryError):
            registry.create(descriptor(orders))

        assert registry.has_schema(orders) is False


class TestKeyLimits:
    """Ids and versions that cannot be keyed are validation errors."""

    def test_overlong_id_rejected(self, registry, table):
        with pytest.raises(ValidationError, match="Schema id is too long"):
            registry.create(descriptor(SchemaId("default", "x" * 70000)))

        assert len(table) == 0

    def test_overlong_namespace_rejected(self, registry):
        with pytest.raises(ValidationError, match="Schema namespace is too long"):
            registry.has_schema(SchemaId("n" * 70000, "orders"))

    def test_multibyte_id_measured_in_bytes(self, registry):
        with pytest.raises(ValidationError):
            registry.create(descriptor(SchemaId("default", "é" * 40000)))

    def test_version_out_of_range_rejected(self, registry, orders):
        registry.create(descriptor(orders))
        registry.add(orders, b"a")

        with pytest.raises(ValidationError, match="out of range"):
            registry.remove_version(orders, 2**64)

        assert registry.get_versions(orders) == {1}
