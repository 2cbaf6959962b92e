"""Tests für die Klassenbildungs-Engine (Wünsche, Pools, Balancer, Generator, Umsetzen)."""

import random

import pytest

from config.schema import AppConfig, ClassSizeRange, GenerationConfig, RandomConfig
from engine.balancer import ClassBalancer, PoolTotals, make_permuter
from engine.generator import ClassGenerator, composite_group_name, straight_group_name
from engine.partition import PoolPartitioner, apportion_classes
from engine.reassignment import ReassignmentError, ReassignmentHandler, move_student
from engine.requests import find_student_by_name, resolve_requests, split_request_text
from models.class_group import ClassGroup
from models.request import Request, RequestKind, RequestLedger
from models.student import Category, StudentRecord


# ─── Hilfsfunktionen ──────────────────────────────────────────────────────────

def identity(items: list) -> list:
    """Deterministischer Permuter: Reihenfolge bleibt erhalten."""
    return list(items)


def make_student(
    sid: str, first: str, surname: str = "", cls: str = "7A",
    academic: str = "Average", behaviour: str = "Good", gender: str = "Female",
    pair: str = "", separate: str = "",
) -> StudentRecord:
    return StudentRecord(
        id=sid, first_name=first, surname=surname, existing_class=cls,
        gender=gender, academic=academic, behaviour=behaviour,
        request_pair=pair, request_separate=separate,
    )


def make_pool(n: int, cls: str = "7A", prefix: str = "S", **kw) -> list[StudentRecord]:
    return [
        make_student(f"{prefix}{i:03d}", f"Vorname{prefix}{i}", f"Nachname{i:03d}", cls=cls, **kw)
        for i in range(n)
    ]


def make_config(
    years=("7",), total: int = 1, composite: int = 0,
    min_size: int = 1, max_size: int = 30, seed=None,
) -> AppConfig:
    return AppConfig(
        generation=GenerationConfig(
            year_levels=list(years), total_classes=total, composite_classes=composite,
            class_size=ClassSizeRange(min=min_size, max=max_size),
        ),
        random=RandomConfig(seed=seed),
    )


def ledger_with(kind: RequestKind, *pairs: tuple[str, str]) -> RequestLedger:
    ledger = RequestLedger()
    for a, b in pairs:
        ledger.add(Request(kind=kind, students=(a, b)))
    return ledger


# ─── WÜNSCHE ──────────────────────────────────────────────────────────────────

class TestRequestResolution:
    def test_split_on_separators(self):
        """Komma, Semikolon und & trennen Namen."""
        assert split_request_text("Jane S, Tom & Ali;  Bea ") == ["Jane S", "Tom", "Ali", "Bea"]
        assert split_request_text("") == []
        assert split_request_text(" , & ") == []

    def test_prefix_resolves_unique_student(self):
        """'B' findet den einzigen 'Bob Smith'."""
        students = [
            make_student("S1", "Alice", "Able", pair="B"),
            make_student("S2", "Bob", "Smith"),
        ]
        ledger = resolve_requests(students)
        assert len(ledger.pairs) == 1
        assert ledger.is_paired("Alice Able", "Bob Smith")

    def test_ambiguous_prefix_takes_first_in_order(self):
        """Mehrdeutiger Präfix → erster Treffer in Eingabe-Reihenfolge."""
        students = [
            make_student("S1", "Alice", "Able", pair="B"),
            make_student("S2", "Bob", "Smith"),
            make_student("S3", "Bob", "Jones"),
        ]
        assert resolve_requests(students).is_paired("Alice Able", "Bob Smith")

        reordered = [students[0], students[2], students[1]]
        assert resolve_requests(reordered).is_paired("Alice Able", "Bob Jones")

    def test_exact_match_beats_prefix(self):
        """Exakter Vollname hat Vorrang vor einem früheren Präfix-Treffer."""
        students = [
            make_student("S1", "Tom", "Lee Junior"),
            make_student("S2", "Tom", "Lee"),
        ]
        assert find_student_by_name("tom lee", students).id == "S2"

    def test_unresolved_and_self_dropped(self):
        """Unbekannte Namen und Selbstbezüge werden verworfen."""
        students = [
            make_student("S1", "Jane", "Smith", pair="Jane Smith, Nobody", separate="Xaver"),
            make_student("S2", "John", "Doe"),
        ]
        ledger = resolve_requests(students)
        assert len(ledger) == 0

    def test_mutual_requests_deduplicated(self):
        """A wünscht B und B wünscht A → ein Eintrag."""
        students = [
            make_student("S1", "Jane", "Smith", pair="John Doe"),
            make_student("S2", "John", "Doe", pair="Jane S"),
        ]
        ledger = resolve_requests(students)
        assert len(ledger.pairs) == 1

    def test_case_insensitive(self):
        """Groß-/Kleinschreibung spielt keine Rolle."""
        students = [
            make_student("S1", "Jane", "Smith", separate="JOHN doe"),
            make_student("S2", "John", "Doe"),
        ]
        assert resolve_requests(students).is_separated("Jane Smith", "John Doe")


# ─── POOLS ────────────────────────────────────────────────────────────────────

class TestPartition:
    def test_apportion_proportional(self):
        """60/40 Schüler, 5 Klassen → 3/2."""
        assert apportion_classes({"7": 60, "8": 40}, 5) == {"7": 3, "8": 2}

    def test_apportion_remainder_to_last(self):
        """Rundungsrest geht an den letzten Jahrgang."""
        assert apportion_classes({"5": 10, "6": 10, "7": 10}, 4) == {"5": 1, "6": 1, "7": 2}

    def test_apportion_rounds_half_up(self):
        """0.5 wird aufgerundet, der Rest wird nicht negativ."""
        assert apportion_classes({"5": 10, "6": 10}, 1) == {"5": 1, "6": 0}

    def test_apportion_empty_year_gets_nothing(self):
        """Jahrgang ohne Schüler → 0 Klassen, Rest an den letzten mit Schülern."""
        assert apportion_classes({"7": 10, "8": 0}, 3) == {"7": 3, "8": 0}

    def test_apportion_no_students(self):
        """Keine Schüler → keine Klassen."""
        assert apportion_classes({"7": 0}, 3) == {"7": 0}

    @pytest.mark.parametrize("counts,total,composite", [
        ({"7": 61, "8": 59}, 5, 1),
        ({"5": 33, "6": 27, "7": 30}, 7, 2),
        ({"9": 100}, 4, 0),
    ])
    def test_reconciliation(self, counts, total, composite):
        """Σ Jahrgangsklassen + Mischklassen = Gesamtklassen."""
        students = []
        for year, n in counts.items():
            students += make_pool(n, cls=f"{year}A", prefix=f"Y{year}_")
        gen = make_config(years=tuple(counts), total=total, composite=composite).generation
        plan = PoolPartitioner(gen).partition(students)
        assert plan.straight_total + plan.composite_classes == total

    def test_excluded_students(self):
        """Schüler anderer Jahrgänge und ohne Jahrgang werden ausgeschlossen."""
        students = make_pool(3, cls="7B") + [
            make_student("X1", "Nina", "Neun", cls="9A"),
            make_student("X2", "Otto", "Ohne", cls="Unknown"),
        ]
        plan = PoolPartitioner(make_config(total=1).generation).partition(students)
        assert len(plan.population) == 3
        assert {s.id for s in plan.excluded} == {"X1", "X2"}

    def test_longest_prefix_wins(self):
        """'10A' gehört zu Jahrgang 10, nicht zu 1."""
        students = [make_student("S1", "A", "A", cls="10A"), make_student("S2", "B", "B", cls="1C")]
        gen = make_config(years=("1", "10"), total=2).generation
        plan = PoolPartitioner(gen).partition(students)
        assert [s.id for s in plan.straight_pools["10"]] == ["S1"]
        assert [s.id for s in plan.straight_pools["1"]] == ["S2"]

    def test_composite_pool_is_leftover(self):
        """Mischklassen-Pool = Population ohne bereits Platzierte."""
        students = make_pool(4)
        plan = PoolPartitioner(make_config(total=1).generation).partition(students)
        assert [s.id for s in plan.composite_pool({"S000", "S002"})] == ["S001", "S003"]


# ─── BALANCER ─────────────────────────────────────────────────────────────────

class TestBalancer:
    def _balancer(self, max_size: int = 30, ledger=None, permute=identity) -> ClassBalancer:
        return ClassBalancer(
            ClassSizeRange(min=1, max=max_size),
            ledger or RequestLedger(),
            permute=permute,
        )

    def test_even_academic_split(self):
        """40 Schüler (20 High / 20 Low), 4 Klassen, max 15 → je 5 High und 5 Low."""
        pool = (
            make_pool(20, prefix="H", academic="High")
            + make_pool(20, prefix="L", academic="Low")
        )
        result = self._balancer(max_size=15).balance(pool, 4)

        assert len(result.classes) == 4
        for cls in result.classes:
            assert cls.stats.count(Category.ACADEMIC, "High") == 5
            assert cls.stats.count(Category.ACADEMIC, "Low") == 5
            assert cls.size == 10
        assert result.fallback_events == []

    def test_separation_fallback_single_class(self):
        """Trennung bei nur 1 Klasse → beide drin, Notplatzierung gemeldet."""
        x = make_student("S1", "Xaver", "X")
        y = make_student("S2", "Yvonne", "Y")
        ledger = ledger_with(RequestKind.SEPARATE, ("Xaver X", "Yvonne Y"))
        result = self._balancer(ledger=ledger).balance([x, y], 1)

        assert result.classes[0].student_ids() == ["S1", "S2"]
        assert len(result.fallback_events) == 1
        event = result.fallback_events[0]
        assert event.student_id == "S2"
        assert event.conflicting_names == ["Xaver X"]

    def test_separation_respected_with_two_classes(self):
        """Mit 2 Klassen landen getrennte Schüler nie zusammen."""
        pool = make_pool(10)
        ledger = ledger_with(
            RequestKind.SEPARATE,
            (pool[0].full_name, pool[1].full_name),
            (pool[2].full_name, pool[3].full_name),
        )
        for seed in range(10):
            balancer = self._balancer(ledger=ledger, permute=make_permuter(random.Random(seed)))
            result = balancer.balance(pool, 2)
            for cls in result.classes:
                names = {s.full_name for s in cls.students}
                assert not {pool[0].full_name, pool[1].full_name} <= names
                assert not {pool[2].full_name, pool[3].full_name} <= names
            assert result.fallback_events == []

    def test_pair_seeded_together(self):
        """Zusammen-Wunsch → beide in derselben Klasse."""
        pool = make_pool(12)
        ledger = ledger_with(RequestKind.PAIR, (pool[3].full_name, pool[9].full_name))
        for seed in range(10):
            balancer = self._balancer(ledger=ledger, permute=make_permuter(random.Random(seed)))
            result = balancer.balance(pool, 3)
            together = [
                c for c in result.classes
                if {"S003", "S009"} <= set(c.student_ids())
            ]
            assert len(together) == 1

    def test_pair_skips_class_with_separation_partner(self):
        """Kleinste Klasse enthält Trennungspartner → Paar in die nächste Klasse."""
        anna, bernd = make_student("S1", "Anna", "A"), make_student("S2", "Bernd", "B")
        emil, fritz = make_student("S3", "Emil", "E"), make_student("S4", "Fritz", "F")
        clara, dora = make_student("S5", "Clara", "C"), make_student("S6", "Dora", "D")
        ledger = ledger_with(
            RequestKind.PAIR, ("Anna A", "Bernd B"), ("Emil E", "Fritz F"), ("Clara C", "Dora D"),
        )
        ledger.add(Request(kind=RequestKind.SEPARATE, students=("Anna A", "Clara C")))
        result = self._balancer(ledger=ledger).balance(
            [anna, bernd, emil, fritz, clara, dora], 2
        )

        # Beide Klassen haben nach zwei Paaren Größe 2; Klasse 0 kommt zuerst
        assert result.classes[0].student_ids() == ["S1", "S2"]
        assert result.classes[1].student_ids() == ["S3", "S4", "S5", "S6"]
        assert result.unseeded_pairs == []
        assert result.fallback_events == []

    def test_separation_lookup_symmetric(self):
        """Trennung einmal erfasst (A, C) gilt in beide Richtungen."""
        anna, clara = make_student("S1", "Anna", "A"), make_student("S2", "Clara", "C")
        ledger = ledger_with(RequestKind.SEPARATE, ("Anna A", "Clara C"))
        balancer = self._balancer(ledger=ledger)
        with_anna, with_clara = ClassGroup(), ClassGroup()
        with_anna.add_student(anna)
        with_clara.add_student(clara)

        assert balancer.violates_separation(clara, with_anna)
        assert balancer.violates_separation(anna, with_clara)
        assert not balancer.violates_separation(anna, ClassGroup())

    def test_pair_with_separation_not_seeded(self):
        """Paar mit gleichzeitigem Trennungswunsch wird nicht vorab platziert."""
        a, b = make_student("S1", "Anna", "A"), make_student("S2", "Bernd", "B")
        ledger = RequestLedger()
        ledger.add(Request(kind=RequestKind.PAIR, students=("Anna A", "Bernd B")))
        ledger.add(Request(kind=RequestKind.SEPARATE, students=("Anna A", "Bernd B")))
        result = self._balancer(ledger=ledger).balance([a, b], 2)

        assert len(result.unseeded_pairs) == 1
        class_of = {sid: i for i, c in enumerate(result.classes) for sid in c.student_ids()}
        assert class_of["S1"] != class_of["S2"]

    def test_pair_not_seeded_when_max_below_two(self):
        """Maximalgröße 1 → Paar kann nicht gemeinsam platziert werden."""
        a, b = make_student("S1", "Anna", "A"), make_student("S2", "Bernd", "B")
        ledger = ledger_with(RequestKind.PAIR, ("Anna A", "Bernd B"))
        result = self._balancer(max_size=1, ledger=ledger).balance([a, b], 2)
        assert len(result.unseeded_pairs) == 1
        assert sorted(result.placed_ids) == ["S1", "S2"]

    def test_conservation_and_capacity(self):
        """Jeder Schüler genau einmal, keine Klasse über max."""
        pool = make_pool(57, academic="High") + make_pool(31, prefix="T", academic="Low")
        for seed in range(5):
            balancer = self._balancer(max_size=23, permute=make_permuter(random.Random(seed)))
            result = balancer.balance(pool, 4)
            ids = [sid for c in result.classes for sid in c.student_ids()]
            assert sorted(ids) == sorted(s.id for s in pool)
            assert sorted(result.placed_ids) == sorted(ids)
            assert all(c.size <= 23 for c in result.classes)
            assert all(c.is_consistent() for c in result.classes)

    def test_exhaustion_reported(self):
        """Mehr Schüler als Plätze → Rest als unplatziert gemeldet."""
        pool = make_pool(7)
        result = self._balancer(max_size=3).balance(pool, 2)
        assert sum(c.size for c in result.classes) == 6
        assert result.unplaced_ids == ["S006"]

    def test_zero_classes_or_empty_pool(self):
        """0 Klassen oder leerer Pool → leeres Ergebnis."""
        assert self._balancer().balance(make_pool(3), 0).classes == []
        assert self._balancer().balance([], 3).classes == []

    def test_marginal_cost_negative_when_underrepresented(self):
        """Unterrepräsentierter Wert → negative Grenzkosten."""
        pool = make_pool(4, academic="High")
        totals = PoolTotals.from_pool(pool, 2)
        balancer = self._balancer()
        cost = balancer.marginal_cost(pool[0], Category.ACADEMIC, ClassGroup(), totals)
        assert cost == pytest.approx((1 - 2) ** 2 - (0 - 2) ** 2)
        assert cost < 0

    def test_placement_cost_infinite_when_full(self):
        """Volle Klasse → unendliche Kosten."""
        pool = make_pool(3)
        cls = ClassGroup()
        cls.add_student(pool[0])
        totals = PoolTotals.from_pool(pool, 1)
        assert self._balancer(max_size=1).placement_cost(pool[1], cls, totals) == float("inf")


# ─── GENERATOR ────────────────────────────────────────────────────────────────

class TestGenerator:
    def test_group_names(self):
        """Gruppennamen wie im Export erwartet."""
        assert straight_group_name("8") == "Straight Year 8"
        assert composite_group_name(["6", "7"]) == "Composite 6/7"

    def test_straight_groups_per_year(self):
        """Zwei Jahrgänge, je eine Klasse, keine Mischklasse."""
        students = make_pool(20, cls="7A", prefix="A") + make_pool(20, cls="8B", prefix="B")
        config = make_config(years=("7", "8"), total=2)
        result = ClassGenerator(config).generate(students, permute=identity)

        assert list(result.classes) == ["Straight Year 7", "Straight Year 8"]
        assert result.classes["Straight Year 7"][0].size == 20
        assert result.unplaced_ids == []
        assert result.total_placed == 40

    def test_repeated_year_level_balanced_once(self):
        """Doppelter Jahrgang ("7,7") → ein Lauf, eine Notplatzierung."""
        students = [
            make_student("S1", "Anna", "A", separate="Bernd B"),
            make_student("S2", "Bernd", "B"),
            make_student("S3", "Clara", "C"),
            make_student("S4", "Dora", "D"),
        ]
        config = make_config(years=("7", "7"), total=1)
        assert config.generation.year_levels == ["7"]

        result = ClassGenerator(config).generate(students, permute=identity)
        assert list(result.classes) == ["Straight Year 7"]
        assert len(result.fallback_events) == 1
        assert result.total_placed == 4

    def test_overflow_goes_to_composite(self):
        """Überzählige Schüler landen in der Mischklasse."""
        students = make_pool(35, cls="7A")
        config = make_config(total=2, composite=1, max_size=30)
        result = ClassGenerator(config).generate(students, permute=identity)

        assert result.classes["Straight Year 7"][0].size == 30
        assert result.classes["Composite 7"][0].size == 5
        assert result.unplaced_ids == []

    def test_empty_composite_group_omitted(self):
        """Leerer Mischklassen-Pool → keine Mischklassen-Gruppe."""
        students = make_pool(10)
        config = make_config(total=2, composite=1)
        result = ClassGenerator(config).generate(students, permute=identity)
        assert "Composite 7" not in result.classes

    def test_unplaced_reported(self):
        """Kapazität erschöpft → unplaced_ids."""
        students = make_pool(35)
        config = make_config(total=1, composite=0, max_size=30)
        result = ClassGenerator(config).generate(students, permute=identity)
        assert len(result.unplaced_ids) == 5
        assert result.total_placed == 30

    @pytest.mark.parametrize("total,composite,years", [
        (0, 0, ("7",)),
        (2, 3, ("7",)),
        (3, 0, ()),
    ])
    def test_degenerate_config_empty_result(self, total, composite, years):
        """Widersprüchliche Config → leeres Ergebnis, keine Exception."""
        config = make_config(years=years, total=total, composite=composite)
        result = ClassGenerator(config).generate(make_pool(10))
        assert result.is_empty
        assert result.unplaced_ids == []

    def test_excluded_reported(self):
        """Schüler anderer Jahrgänge stehen in excluded_ids."""
        students = make_pool(5) + [make_student("X1", "Nina", "Neun", cls="9A")]
        result = ClassGenerator(make_config(total=1)).generate(students, permute=identity)
        assert result.excluded_ids == ["X1"]
        assert result.find_student("X1") is None

    def test_same_seed_same_result(self):
        """Gleicher Seed → identische Einteilung."""
        students = (
            make_pool(30, academic="High", gender="Male")
            + make_pool(30, prefix="T", academic="Low")
        )
        config = make_config(total=3, seed=123)
        first = ClassGenerator(config).generate(students)
        second = ClassGenerator(config).generate(students)
        assert [c.student_ids() for c in first.all_classes()] == \
            [c.student_ids() for c in second.all_classes()]

    def test_fallback_event_has_group_name(self):
        """Notplatzierungen tragen den Gruppennamen."""
        students = [
            make_student("S1", "Xaver", "X", separate="Yvonne Y"),
            make_student("S2", "Yvonne", "Y"),
        ]
        result = ClassGenerator(make_config(total=1)).generate(students, permute=identity)
        assert len(result.fallback_events) == 1
        assert result.fallback_events[0].group_name == "Straight Year 7"


# ─── UMSETZEN ─────────────────────────────────────────────────────────────────

@pytest.fixture()
def two_class_result():
    students = (
        make_pool(6, academic="High", gender="Male")
        + make_pool(6, prefix="T", academic="Low")
    )
    return ClassGenerator(make_config(total=2)).generate(students, permute=identity)


class TestReassignment:
    def test_move_updates_both_stats(self, two_class_result):
        """Nach dem Umsetzen stimmen Quell- und Zielstatistik."""
        classes = two_class_result.classes
        handler = ReassignmentHandler(classes)
        source, target = classes["Straight Year 7"]
        sid = source.students[0].id
        size_before = (source.size, target.size)

        handler.move("Straight Year 7", 0, "Straight Year 7", 1, sid, 0)

        assert (source.size, target.size) == (size_before[0] - 1, size_before[1] + 1)
        assert target.students[0].id == sid
        assert source.is_consistent() and target.is_consistent()
        assert handler.locate(sid) == ("Straight Year 7", 1)

    def test_move_within_class_reorders(self, two_class_result):
        """Umsetzen innerhalb derselben Klasse ändert nur die Reihenfolge."""
        cls = two_class_result.classes["Straight Year 7"][0]
        ids = cls.student_ids()
        move_student(cls, cls, ids[0], 99)
        assert cls.student_ids() == ids[1:] + ids[:1]
        assert cls.is_consistent()

    def test_move_to_appends_by_default(self, two_class_result):
        """move_to ohne Position → ans Ende."""
        handler = ReassignmentHandler(two_class_result.classes)
        target = two_class_result.classes["Straight Year 7"][1]
        sid = two_class_result.classes["Straight Year 7"][0].students[-1].id
        handler.move_to(sid, "Straight Year 7", 1)
        assert target.students[-1].id == sid

    def test_move_ignores_capacity(self):
        """Umsetzen prüft keine Kapazität."""
        result = ClassGenerator(make_config(total=2, max_size=6)).generate(
            make_pool(12), permute=identity
        )
        handler = ReassignmentHandler(result.classes)
        first, second = result.classes["Straight Year 7"]
        for s in list(first.students):
            handler.move_to(s.id, "Straight Year 7", 1)
        assert first.size == 0
        assert second.size == 12
        assert second.is_consistent()

    @pytest.mark.parametrize("group,idx,sid", [
        ("Gibt es nicht", 0, "S000"),
        ("Straight Year 7", 5, "S000"),
        ("Straight Year 7", -1, "S000"),
    ])
    def test_bad_coordinates_raise(self, two_class_result, group, idx, sid):
        """Ungültige Gruppe oder Klasse → ReassignmentError."""
        handler = ReassignmentHandler(two_class_result.classes)
        with pytest.raises(ReassignmentError):
            handler.move_to(sid, group, idx)

    def test_unknown_student_raises(self, two_class_result):
        """Unbekannte Schüler-ID → ReassignmentError."""
        handler = ReassignmentHandler(two_class_result.classes)
        with pytest.raises(ReassignmentError):
            handler.move_to("NOPE", "Straight Year 7", 0)

    def test_student_not_in_source_raises(self, two_class_result):
        """Schüler nicht in der angegebenen Quellklasse → ReassignmentError."""
        source, target = two_class_result.classes["Straight Year 7"]
        sid = target.students[0].id
        with pytest.raises(ReassignmentError):
            move_student(source, target, sid, 0)
