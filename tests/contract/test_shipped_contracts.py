import threading
import time
import unittest
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import patch

from levelgate import contract_store
from levelgate.contract_store import shipped_contracts


class TestShippedContracts(unittest.TestCase):
    def test_schemas_are_valid(self) -> None:
        store = shipped_contracts()
        self.assertEqual(
            store.list_schema_names(),
            ["decision_record.schema.json", "gate_config.schema.json", "operation.schema.json"],
        )
        self.assertEqual(store.check_schemas(), [])

    def test_decision_record_requires_decision_fields(self) -> None:
        store = shipped_contracts()
        base = {"ts": "2026-10-19T00:00:00Z", "run_id": "r1", "event_type": "decision"}
        self.assertNotEqual(store.validate("decision_record.schema.json", base), [])

        full = dict(
            base,
            operation_id="objects.read",
            required_level="READ",
            subject={"caller_id": 1, "resource_id": 1},
            decision="allow",
        )
        self.assertEqual(store.validate("decision_record.schema.json", full), [])

        unknown = dict(base, event_type="resolution_failed")
        self.assertEqual(store.validate("decision_record.schema.json", unknown), [])

    def test_unknown_schema(self) -> None:
        with self.assertRaises(KeyError):
            shipped_contracts().validate("missing.schema.json", {})

    def test_concurrent_first_use_loads_once(self) -> None:
        original_load = contract_store.ContractStore.load
        loads = []
        lock = threading.Lock()

        def slow_load(store: contract_store.ContractStore) -> None:
            with lock:
                loads.append(store)
            time.sleep(0.05)
            original_load(store)

        with patch.object(contract_store, "_SHIPPED", None), patch.object(contract_store.ContractStore, "load", slow_load):
            with ThreadPoolExecutor(max_workers=8) as pool:
                stores = list(pool.map(lambda _: contract_store.shipped_contracts(), range(16)))

        self.assertEqual(len(loads), 1)
        self.assertTrue(all(s is stores[0] for s in stores))
        self.assertEqual(len(stores[0].list_schema_names()), 3)


if __name__ == "__main__":
    unittest.main()
