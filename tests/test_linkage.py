from conftest import DEFECT_HEADERS, MAIN_HEADERS
from weld_dashboard.linkage import (
    build_linkage_index,
    composite_key,
    defective_mask,
    is_defective,
    is_reworked,
    reworked_mask,
)
from weld_dashboard.models import LinkageIndex
from weld_dashboard.transforms import normalize_defects, normalize_main


def test_composite_key():
    assert composite_key("100", "C1") == "100_C1"
    assert composite_key(" 100 ", "C1 ") == "100_C1"
    assert composite_key("", "C1") is None
    assert composite_key("100", None) is None


def test_missing_join_key_is_never_defective():
    index = LinkageIndex(rejection_keys=frozenset({"_C1", "C1", "100_", "100"}))

    assert not is_defective({"order_id": "", "component_id": "C1"}, index)
    assert not is_defective({"order_id": "100", "component_id": ""}, index)
    assert not is_defective({}, index)
    assert not is_reworked({"order_id": "", "component_id": "C1"}, index)


def test_build_linkage_index(table):
    raw = table(DEFECT_HEADERS, [
        {"Номер заказа": "100", "№Днища": "C1", "Технологическая операция": "Предъявление продукции"},
        {"Номер заказа": "100", "№Днища": "C1", "Технологическая операция": "Предъявление продукции"},
        {"Номер заказа": "100", "№Днища": "C2", "Технологическая операция": "Исправление повторное"},
        {"Номер заказа": "", "№Днища": "C3", "Технологическая операция": "Предъявление продукции"},
        {"Номер заказа": "101", "№Днища": "C4", "Технологическая операция": "Сборка"},
    ])
    defects, _, _ = normalize_defects(raw.rows, raw.headers)

    index = build_linkage_index(defects)

    assert index.rejection_keys == frozenset({"100_C1"})
    assert index.rework_keys == frozenset({"100_C2"})
    assert index.stage_counts == {"primary-rejection": 3, "rework": 1, "other": 1}
    assert is_defective({"order_id": "100", "component_id": "C1"}, index)
    assert is_reworked({"order_id": "100", "component_id": "C2"}, index)
    assert not is_defective({"order_id": "100", "component_id": "C2"}, index)


def test_build_linkage_index_without_defects():
    index = build_linkage_index(None)
    assert len(index) == 0
    assert index.rework_keys == frozenset()


def test_component_masks(table):
    raw = table(MAIN_HEADERS, [
        {"Дата": "01.01.2024", "Номер заказа": "100", "№Днища": "C1"},
        {"Дата": "01.01.2024", "Номер заказа": "100", "№Днища": "C2"},
        {"Дата": "01.01.2024", "Номер заказа": "", "№Днища": "C1"},
    ])
    frame, _, _ = normalize_main(raw.rows, raw.headers)
    index = LinkageIndex(rejection_keys=frozenset({"100_C1"}), rework_keys=frozenset({"100_C2"}))

    assert list(defective_mask(frame, index)) == [True, False, False]
    assert list(reworked_mask(frame, index)) == [False, True, False]
