"""Unit tests for the process plan engine.

Day counts follow the sample catalog in conftest: 버림 2, 기초 2, 지하층 12,
셋팅층 4, 기준층 33, 옥탑층 3 (56 in total).
"""

from __future__ import annotations

import pytest

from framecalc.config import AppConfig, CalculationConfig
from framecalc.models import MaterialField, ProcessCategory
from framecalc.planning.engine import ProcessPlanEngine, parse_positive
from framecalc.planning.scopes import CategoryScope, SpecialRowKind


class TestParsePositive:
    @pytest.mark.parametrize(
        "value, expected",
        [(3, 3), ("3", 3), (" 2.5 ", 2.5), (4.0, 4), ("", None), ("abc", None),
         (0, None), ("-1", None), (None, None), (True, None), (float("nan"), None)],
    )
    def test_values(self, value, expected):
        assert parse_positive(value) == expected


class TestInitialPlan:
    """Default plan and aggregation."""

    def test_category_days(self, engine):
        plan = engine.initial_plan()

        days = {category: process.days for category, process in plan.processes.items()}
        assert days == {
            ProcessCategory.STRIP: 2,
            ProcessCategory.FOUNDATION: 2,
            ProcessCategory.BASEMENT: 12,
            ProcessCategory.SETTING: 4,
            ProcessCategory.STANDARD: 33,
            ProcessCategory.ROOFTOP: 3,
        }
        assert plan.total_days == 56

    def test_default_process_types(self, engine):
        plan = engine.initial_plan()

        assert plan.processes[ProcessCategory.STANDARD].process_type == "6일 사이클"
        assert plan.processes[ProcessCategory.BASEMENT].process_type == "표준공정"
        assert plan.building_id == "bldg-101"
        assert plan.id == "plan-bldg-101"

    def test_ph_floors_are_not_aggregated(self, engine):
        plan = engine.initial_plan()
        assert ProcessCategory.PH not in plan.processes

    def test_basement_scope(self, sample_building, sample_catalog, app_config):
        engine = ProcessPlanEngine(
            sample_building, CategoryScope.BASEMENT_ONLY, sample_catalog, app_config
        )

        plan = engine.initial_plan()

        assert set(plan.processes) == {
            ProcessCategory.STRIP,
            ProcessCategory.FOUNDATION,
            ProcessCategory.BASEMENT,
        }
        assert plan.total_days == 16

    def test_recalculation_is_deterministic(self, engine):
        plan = engine.initial_plan()

        assert engine.recalculate(plan) == plan
        assert engine.compute_total_days(plan) == plan.total_days


class TestScopeDays:
    """Per-floor scopes."""

    def test_basement_floors_use_their_tagged_items(self, engine):
        plan = engine.initial_plan()

        assert engine.scope_days(plan, ProcessCategory.BASEMENT, "B2") == 4
        # 2.4 * 3 + 1 floors once to 8
        assert engine.scope_days(plan, ProcessCategory.BASEMENT, "B1") == 8

    def test_standard_floor_quantities_are_per_floor(self, engine):
        plan = engine.initial_plan()

        assert engine.scope_days(plan, ProcessCategory.STANDARD, "3F") == 2
        assert engine.scope_days(plan, ProcessCategory.STANDARD, "5F") == 3
        assert engine.scope_days(plan, ProcessCategory.STANDARD, "8F") == 4
        assert engine.scope_days(plan, ProcessCategory.STANDARD, "15F") == 4

    def test_rooftop_items_filtered_by_tag(self, engine):
        plan = engine.initial_plan()

        item_ids = [item.id for item in engine.items_for(plan, ProcessCategory.ROOFTOP, "옥탑1")]

        assert item_ids == ["roof-fixed", "roof-concrete"]
        assert engine.scope_days(plan, ProcessCategory.ROOFTOP, "옥탑1") == 3

    def test_unknown_floor_is_zero(self, engine):
        plan = engine.initial_plan()
        assert engine.scope_days(plan, ProcessCategory.STANDARD, "40F") == 0

    def test_pump_car_cap_from_config(self, sample_building, sample_catalog):
        building = sample_building.model_copy(
            update={"meta": sample_building.meta.model_copy(update={"pump_car_count": None})}
        )
        config = AppConfig(calculation=CalculationConfig(default_pump_car_count=1))
        engine = ProcessPlanEngine(building, catalog=sample_catalog, config=config)

        plan = engine.initial_plan()

        assert engine.max_equipment_count == 1
        # 240 / 60 with a single pump: 4 days instead of 2
        assert engine.scope_days(plan, ProcessCategory.STANDARD, "8F") == 6


class TestOverrides:
    """Item direct-work-day overrides."""

    def test_override_replaces_computed_days(self, engine):
        plan = engine.initial_plan()

        updated = engine.set_override(plan, ProcessCategory.BASEMENT, "B1", "b1-fixed", 1)

        assert updated.item_direct_work_days_overrides == {"지하층-B1-b1-fixed": 1}
        assert engine.scope_days(updated, ProcessCategory.BASEMENT, "B1") == 6
        assert updated.total_days == 54

    def test_input_plan_is_not_mutated(self, engine):
        plan = engine.initial_plan()

        engine.set_override(plan, ProcessCategory.STRIP, None, "strip-fixed", 5)

        assert plan.item_direct_work_days_overrides == {}
        assert plan.total_days == 56

    def test_scalar_category_key(self, engine):
        plan = engine.set_override(engine.initial_plan(), ProcessCategory.STRIP, None, "strip-fixed", "4")

        assert plan.item_direct_work_days_overrides == {"버림--strip-fixed": 4}
        assert plan.processes[ProcessCategory.STRIP].days == 5

    @pytest.mark.parametrize("cleared", [None, "", "0", "-2", "abc"])
    def test_clearing_reverts_to_computed(self, engine, cleared):
        plan = engine.set_override(engine.initial_plan(), ProcessCategory.SETTING, "1F", "setting-form", 10)
        assert plan.total_days == 63

        reverted = engine.set_override(plan, ProcessCategory.SETTING, "1F", "setting-form", cleared)

        assert reverted.item_direct_work_days_overrides == {}
        assert reverted.total_days == 56

    def test_clear_override(self, engine):
        plan = engine.set_override(engine.initial_plan(), ProcessCategory.ROOFTOP, "옥탑1", "roof-fixed", 2)

        cleared = engine.clear_override(plan, ProcessCategory.ROOFTOP, "옥탑1", "roof-fixed")

        assert cleared.total_days == 56

    def test_standard_override_is_shared_across_floors(self, engine):
        plan = engine.set_override(engine.initial_plan(), ProcessCategory.STANDARD, "5F", "std-fixed", 3)

        assert plan.item_direct_work_days_overrides == {"기준층-15F-std-fixed": 3}
        assert engine.override_for(plan, ProcessCategory.STANDARD, "8F", "std-fixed") == 3
        assert engine.scope_days(plan, ProcessCategory.STANDARD, "3F") == 3
        assert plan.processes[ProcessCategory.STANDARD].days == 47
        assert plan.total_days == 70

    def test_standard_quantities_stay_independent(self, engine):
        plan = engine.set_override(engine.initial_plan(), ProcessCategory.STANDARD, "5F", "std-fixed", 3)

        five = engine.scope_quantities(plan, ProcessCategory.STANDARD, "5F")
        eight = engine.scope_quantities(plan, ProcessCategory.STANDARD, "8F")

        assert five.concrete == 120
        assert eight.concrete == 240

    def test_per_floor_standard_key_takes_precedence(self, engine):
        plan = engine.initial_plan()
        legacy = plan.model_copy(
            update={"item_direct_work_days_overrides": {"기준층-5F-std-fixed": 4}}
        )

        assert engine.scope_days(legacy, ProcessCategory.STANDARD, "5F") == 5
        assert engine.scope_days(legacy, ProcessCategory.STANDARD, "3F") == 2

        updated = engine.set_override(legacy, ProcessCategory.STANDARD, "5F", "std-fixed", 3)
        assert updated.item_direct_work_days_overrides == {"기준층-15F-std-fixed": 3}

    def test_edit_replaces_every_per_floor_standard_key(self, engine):
        per_floor = {f"기준층-{number}F-std-fixed": 4 for number in range(2, 16)}
        legacy = engine.recalculate(
            engine.initial_plan().model_copy(update={"item_direct_work_days_overrides": per_floor})
        )
        assert legacy.total_days == 84

        updated = engine.set_override(legacy, ProcessCategory.STANDARD, "5F", "std-fixed", 3)

        assert updated.item_direct_work_days_overrides == {"기준층-15F-std-fixed": 3}
        assert engine.override_for(updated, ProcessCategory.STANDARD, "8F", "std-fixed") == 3
        assert updated.total_days == 70

        cleared = engine.clear_override(legacy, ProcessCategory.STANDARD, "5F", "std-fixed")

        assert cleared.item_direct_work_days_overrides == {}
        assert cleared.total_days == 56

    def test_overrides_survive_reload(self, engine):
        plan = engine.set_override(engine.initial_plan(), ProcessCategory.BASEMENT, "B2", "b2-form", 7)

        reloaded = type(plan).model_validate_json(plan.to_json())

        assert engine.recalculate(reloaded).total_days == plan.total_days == 60


class TestProcessTypes:
    """Changing the catalog module of a category."""

    def test_change_standard_cycle(self, engine):
        plan = engine.change_process_type(engine.initial_plan(), ProcessCategory.STANDARD, "7일 사이클")

        assert plan.processes[ProcessCategory.STANDARD].process_type == "7일 사이클"
        assert plan.processes[ProcessCategory.STANDARD].days == 42
        assert plan.total_days == 65

    def test_uncatalogued_type_contributes_nothing(self, engine):
        plan = engine.change_process_type(engine.initial_plan(), ProcessCategory.STANDARD, "9일 사이클")

        assert plan.processes[ProcessCategory.STANDARD].days == 0
        assert plan.total_days == 23

    def test_rooftop_type_is_per_floor(self, engine):
        plan = engine.change_process_type(
            engine.initial_plan(), ProcessCategory.ROOFTOP, "5일 사이클", "옥탑1"
        )

        rooftop = plan.processes[ProcessCategory.ROOFTOP]
        assert rooftop.process_type == "표준공정"
        assert rooftop.floors["옥탑1"].process_type == "5일 사이클"
        assert engine.process_type_for(plan, ProcessCategory.ROOFTOP, "PH1") == "5일 사이클"
        assert plan.total_days == 53

    def test_special_row_changes_parent_floor(self, engine):
        plan = engine.change_process_type(
            engine.initial_plan(), ProcessCategory.BASEMENT, "3일 공정", "B1 주차장"
        )

        assert set(plan.processes[ProcessCategory.BASEMENT].floors) == {"B1"}
        assert engine.scope_days(plan, ProcessCategory.BASEMENT, "B1") == 0
        assert engine.scope_days(plan, ProcessCategory.BASEMENT, "B2") == 4


class TestSpecialRows:
    """Basement parking and temporary-facility rows."""

    def test_parent_quantities_are_net_of_special_rows(self, engine):
        plan = engine.initial_plan()
        plan = engine.set_special_row_quantity(plan, "B1", SpecialRowKind.PARKING, MaterialField.FORMWORK, 80)
        plan = engine.set_special_row_quantity(
            plan, "B1", SpecialRowKind.TEMPORARY_FACILITY, MaterialField.FORMWORK, "40"
        )

        assert plan.special_row_quantities == {
            "B1 주차장": {"formwork": 80},
            "B1 3단 가시설 적용부": {"formwork": 40},
        }
        assert engine.scope_quantities(plan, ProcessCategory.BASEMENT, "B1").formwork == 380
        assert engine.scope_quantities(plan, ProcessCategory.BASEMENT, "B1 주차장").formwork == 80

    def test_net_quantity_never_negative(self, engine):
        plan = engine.set_special_row_quantity(
            engine.initial_plan(), "B1", SpecialRowKind.PARKING, MaterialField.CONCRETE, 1000
        )
        assert engine.scope_quantities(plan, ProcessCategory.BASEMENT, "B1").concrete == 0

    def test_special_row_days_use_own_quantities(self, engine):
        plan = engine.set_special_row_quantity(
            engine.initial_plan(), "B2", SpecialRowKind.PARKING, MaterialField.FORMWORK, 80
        )

        assert engine.scope_days(plan, ProcessCategory.BASEMENT, "B2 주차장") == 3

        plan = engine.set_special_row_quantity(
            plan, "B2", SpecialRowKind.PARKING, MaterialField.CONCRETE, 1000
        )
        assert engine.scope_days(plan, ProcessCategory.BASEMENT, "B2 주차장") == 4

    def test_special_rows_excluded_from_total(self, engine):
        plan = engine.set_special_row_quantity(
            engine.initial_plan(), "B2", SpecialRowKind.PARKING, MaterialField.CONCRETE, 1000
        )

        assert engine.scope_days(plan, ProcessCategory.BASEMENT, "B2") == 4
        assert plan.total_days == 56

    def test_special_row_override_is_separate(self, engine):
        plan = engine.set_override(
            engine.initial_plan(), ProcessCategory.BASEMENT, "B1 주차장", "b1-fixed", 1
        )

        assert plan.item_direct_work_days_overrides == {"지하층-B1 주차장-b1-fixed": 1}
        assert engine.scope_days(plan, ProcessCategory.BASEMENT, "B1 주차장") == 5
        assert engine.scope_days(plan, ProcessCategory.BASEMENT, "B1") == 8
        assert plan.total_days == 56

    def test_clearing_quantity_removes_entry(self, engine):
        plan = engine.set_special_row_quantity(
            engine.initial_plan(), "B1", SpecialRowKind.PARKING, MaterialField.REBAR, 5
        )

        plan = engine.set_special_row_quantity(plan, "B1", SpecialRowKind.PARKING, MaterialField.REBAR, "")

        assert plan.special_row_quantities == {}


class TestScopeQuantities:
    def test_trade_group_categories(self, engine):
        plan = engine.initial_plan()

        strip = engine.scope_quantities(plan, ProcessCategory.STRIP)
        foundation = engine.scope_quantities(plan, ProcessCategory.FOUNDATION)

        assert strip.concrete == 75
        assert foundation.formwork == 120
        assert foundation.rebar == 35

    def test_above_grade_formwork_combines_form_systems(self, engine):
        quantities = engine.scope_quantities(engine.initial_plan(), ProcessCategory.SETTING, "1F")

        assert quantities.formwork == 300
        assert quantities.rebar == 20
        assert quantities.concrete == 150


class TestPreliminaryWork:
    def test_recorded_but_not_totalled(self, engine):
        plan = engine.set_preliminary_work_days(engine.initial_plan(), "earthwork_work_days", "12")

        assert plan.earthwork_work_days == 12
        assert plan.total_days == 56

    def test_unknown_field_leaves_plan_unchanged(self, engine):
        plan = engine.initial_plan()

        assert engine.set_preliminary_work_days(plan, "total_days", 3) is plan
        assert plan.total_days == 56


class TestBuildingEdits:
    def test_with_building_recomputes_quantities(self, engine, sample_building):
        trades = [
            trade.model_copy(update={"trades": {"concrete": {"volumeM3": 600}}})
            if trade.floor_id == "f-std-5F"
            else trade
            for trade in sample_building.floor_trades
        ]
        edited = engine.with_building(sample_building.model_copy(update={"floor_trades": trades}))

        plan = edited.recalculate(engine.initial_plan())

        # 600 / 60 / (2 pumps x 1 worker) = 5 days instead of 1
        assert edited.scope_days(plan, ProcessCategory.STANDARD, "5F") == 7
        assert plan.total_days == 60
