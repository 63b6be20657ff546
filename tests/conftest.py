"""Pytest configuration and fixtures for FrameCalc tests.

Provides a sample building covering every floor group and a small process
module catalog whose day counts are easy to follow by hand.
"""

from __future__ import annotations

import pytest

from framecalc.catalog.modules import ProcessModuleCatalog
from framecalc.config import AppConfig, CalculationConfig, StoreConfig, reset_config
from framecalc.models import (
    Building,
    BuildingMeta,
    Floor,
    FloorClass,
    FloorCount,
    FloorTrade,
    LevelType,
    ProcessCategory,
    ProcessModule,
    ProcessModuleItem,
    UnitTypePattern,
)
from framecalc.planning.engine import ProcessPlanEngine


@pytest.fixture(autouse=True)
def _fresh_config(monkeypatch):
    """Isolate every test from the caller's environment and cached config."""
    for name in (
        "LOG_LEVEL",
        "LOG_FORMAT",
        "DEFAULT_PUMP_CAR_COUNT",
        "DEFAULT_CATEGORY_SCOPE",
        "PLAN_STORE_DIR",
        "PROCESS_MODULES_PATH",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def app_config(tmp_path) -> AppConfig:
    """Configuration writing plans under a temporary directory."""
    return AppConfig(
        calculation=CalculationConfig(default_pump_car_count=2),
        store=StoreConfig(plan_dir=tmp_path / "plans"),
    )


def _floor(floor_id: str, label: str, number: int, level: LevelType, floor_class: FloorClass) -> Floor:
    return Floor(
        id=floor_id,
        building_id="bldg-101",
        floor_label=label,
        floor_number=number,
        level_type=level,
        floor_class=floor_class,
    )


def _trade(floor_id: str, trade_group: str = "아파트", **quantities: float) -> FloorTrade:
    keys = {
        "gangForm": "areaM2",
        "alForm": "areaM2",
        "formwork": "areaM2",
        "rebar": "ton",
        "concrete": "volumeM3",
    }
    trades = {field: {keys[field]: value} for field, value in quantities.items()}
    return FloorTrade(
        id=f"trade-{floor_id}-{trade_group}",
        floor_id=floor_id,
        building_id="bldg-101",
        trade_group=trade_group,
        trades=trades,
    )


@pytest.fixture
def sample_building() -> Building:
    """Two basements, one setting floor, 2~14F range, top 15F, PH1/PH2.

    PH1 is classed as a rooftop floor, PH2 as a PH floor. Standard floors
    carry quantities on 5F and 8F (per-floor records of the range) and 15F.
    """
    above, below = LevelType.ABOVE_GRADE, LevelType.BELOW_GRADE
    floors = [
        _floor("f-b2", "B2", -2, below, FloorClass.BASEMENT),
        _floor("f-b1", "B1", -1, below, FloorClass.BASEMENT),
        _floor("f-found", "기초", -3, below, FloorClass.FOUNDATION),
        _floor("f-1", "1F", 1, above, FloorClass.SETTING),
        _floor("f-std", "2~14F 기준층", 2, above, FloorClass.STANDARD),
        _floor("f-top", "15F", 15, above, FloorClass.TOP),
        _floor("f-ph1", "PH1", 16, above, FloorClass.ROOFTOP),
        _floor("f-ph2", "PH2", 17, above, FloorClass.PH),
    ]
    trades = [
        _trade("f-b2", formwork=450, rebar=40, concrete=600),
        _trade("f-b1", formwork=500, rebar=30, concrete=300),
        _trade("f-1", gangForm=0, alForm=200, formwork=100, rebar=20, concrete=150),
        _trade("f-std-5F", alForm=300, rebar=12, concrete=120),
        _trade("f-std-8F", alForm=300, rebar=12, concrete=240),
        _trade("f-top", alForm=280, rebar=11, concrete=90),
        _trade("f-ph1", formwork=60, rebar=3, concrete=30),
        _trade("f-found", trade_group="버림", concrete=50),
        _trade("f-b2", trade_group="버림", concrete=25),
        _trade("f-found", trade_group="기초", formwork=120, rebar=35, concrete=400),
    ]
    meta = BuildingMeta(
        total_units=56,
        unit_type_pattern=[
            UnitTypePattern(**{"from": 101, "to": 104, "type": "84A", "coreNumber": 1}),
            UnitTypePattern(**{"from": 105, "to": 106, "type": "59B", "coreNumber": 2}),
        ],
        core_count=2,
        floor_count=FloorCount(basement=2, ground=15, ph=2, pilotis_count=1),
        standard_floor_cycle=6,
        pump_car_count=2,
    )
    return Building(
        id="bldg-101",
        project_id="proj-1",
        building_name="101동",
        building_number=101,
        meta=meta,
        floors=floors,
        floor_trades=trades,
    )


def _item(item_id: str, **fields) -> ProcessModuleItem:
    return ProcessModuleItem(id=item_id, work_item=item_id, **fields)


def _concrete(item_id: str, reference: str, base: float, workers: float, productivity: float, **fields):
    return _item(
        item_id,
        quantity_reference=reference,
        daily_productivity=productivity,
        equipment_name="콘크리트 펌프차",
        equipment_calculation_base=base,
        equipment_workers_per_unit=workers,
        **fields,
    )


@pytest.fixture
def sample_catalog() -> ProcessModuleCatalog:
    """Catalog giving the sample building 56 days in the full-building scope.

    버림 2, 기초 2, 지하층 12 (B2 4, B1 8), 셋팅층 4, 기준층 33, 옥탑층 3.
    """
    modules = [
        ProcessModule(
            id="strip",
            process_type="표준공정",
            category=ProcessCategory.STRIP,
            items=(
                _item("strip-fixed", direct_work_days=1),
                _concrete("strip-concrete", "G6", 650, 4, 130),
            ),
        ),
        ProcessModule(
            id="foundation",
            process_type="표준공정",
            category=ProcessCategory.FOUNDATION,
            items=(_item("found-fixed", quantity_reference="F7", direct_work_days=2),),
        ),
        ProcessModule(
            id="basement",
            process_type="표준공정",
            category=ProcessCategory.BASEMENT,
            items=(
                _item(
                    "b2-form",
                    quantity_reference="D8",
                    daily_productivity=50,
                    equipment_count=3,
                    floor_label="B2",
                ),
                _concrete("b2-concrete", "G8", 500, 5, 130, floor_label="B2"),
                _item("b1-fixed", direct_work_days=2.4, floor_label="B1"),
                _item("b1-fixed-2", direct_work_days=2.4, floor_label="B1"),
                _item("b1-fixed-3", direct_work_days=2.4, floor_label="B1"),
                _concrete("b1-concrete", "G9*0.5", 500, 5, 130, floor_label="B1"),
            ),
        ),
        ProcessModule(
            id="setting",
            process_type="표준공정",
            category=ProcessCategory.SETTING,
            items=(
                _item("setting-form", quantity_reference="D11", direct_work_days=3),
                _concrete("setting-concrete", "G11", 500, 5, 30),
            ),
        ),
        ProcessModule(
            id="standard-6day",
            process_type="6일 사이클",
            category=ProcessCategory.STANDARD,
            items=(
                _item("std-fixed", direct_work_days=2),
                _concrete("std-concrete", "G15", 100, 1, 60),
            ),
        ),
        ProcessModule(
            id="standard-7day",
            process_type="7일 사이클",
            category=ProcessCategory.STANDARD,
            items=(_item("std7-fixed", direct_work_days=3),),
        ),
        ProcessModule(
            id="rooftop",
            process_type="표준공정",
            category=ProcessCategory.ROOFTOP,
            items=(
                _item("roof-fixed", direct_work_days=1),
                _item(
                    "roof-concrete",
                    quantity_reference="G26",
                    daily_productivity=10,
                    equipment_count=2,
                    floor_label="옥탑1",
                ),
                _item("roof2-only", direct_work_days=5, floor_label="옥탑2"),
            ),
        ),
    ]
    return ProcessModuleCatalog(modules)


@pytest.fixture
def engine(sample_building, sample_catalog, app_config) -> ProcessPlanEngine:
    """Full-building engine over the sample building and catalog."""
    return ProcessPlanEngine(sample_building, catalog=sample_catalog, config=app_config)
