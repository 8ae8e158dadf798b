import pytest
from apothecary.components.progression import Chosen, PlayerProgression, SkillProgress, Unchosen
from apothecary.progression.professions import ProfessionId
from apothecary.progression.quests import Quest, QuestStatus
from apothecary.progression.service import ProgressionEvent, ProgressionService

def make_service(event_bus=None, **player_fields):
    return ProgressionService(event_bus=event_bus, player=PlayerProgression(**player_fields))

def test_new_player(service):
    assert service.level == 4
    assert service.xp == 0
    assert service.xp_to_next_level == 50
    assert service.chosen_profession is None
    assert isinstance(service.profession_choice, Unchosen)
    assert service.title == "Independent Apothecary"
    assert service.skill_level("literacy") == 5
    assert not service.is_profession_choice_pending

def test_award_xp_levels_up(service, recorder):
    events = recorder.watch(*ProgressionEvent)

    assert service.award_xp(50, source="first patient") == 1

    assert service.level == 5
    assert service.xp == 0
    assert service.skill_points == 1
    assert service.is_profession_choice_pending
    types = [e.type for e in events]
    assert types == [
        ProgressionEvent.XP_GAINED,
        ProgressionEvent.LEVEL_UP,
        ProgressionEvent.PROFESSION_CHOICE_AVAILABLE,
    ]
    assert events[0]["source"] == "first patient"
    assert events[1]["previous_level"] == 4

def test_award_xp_partial(service):
    assert service.award_xp(30) == 0
    assert service.xp == 30
    assert service.total_xp == 30
    assert service.xp_to_next_level == 20

def test_award_xp_across_bands(service):
    # 50 to reach 5, 5 x 75 to reach 10, then 100 per level
    assert service.award_xp(1000) == 11

    assert service.level == 15
    assert service.xp == 75
    assert service.skill_points == 11
    assert service.total_xp == 1000

def test_level_cap(service):
    service.award_xp(10 ** 6)

    assert service.level == 99
    assert service.xp == 0
    assert service.xp_to_next_level == 0
    assert service.award_xp(500) == 0
    assert service.level == 99

def test_invalid_xp_is_ignored(service, caplog):
    assert service.award_xp(0) == 0
    assert service.award_xp(-20) == 0
    assert service.award_xp("lots") == 0
    assert service.total_xp == 0
    assert "Ignoring XP award" in caplog.text

def test_choice_available_published_once(service, recorder):
    events = recorder.watch(ProgressionEvent.PROFESSION_CHOICE_AVAILABLE)

    service.award_xp(50)
    service.award_xp(75)

    assert len(events) == 1
    recommended = [r.profession for r in events[0]["recommendations"]]
    assert recommended == [ProfessionId.SCHOLAR, ProfessionId.ALCHEMIST]

def test_choose_profession(service, recorder):
    events = recorder.watch(*ProgressionEvent)
    service.award_xp(50)
    events.clear()

    assert service.choose_profession("surgeon")

    assert service.chosen_profession is ProfessionId.SURGEON
    assert service.profession_choice == Chosen(profession=ProfessionId.SURGEON)
    assert not service.is_profession_choice_pending
    assert service.title == "Surgeon"
    assert [e.type for e in events] == [
        ProgressionEvent.PROFESSION_CHOSEN,
        ProgressionEvent.ABILITY_UNLOCKED,
        ProgressionEvent.TITLE_CHANGED,
    ]
    assert events[1]["ability"].name == "Steady Hand"
    assert events[2]["previous_title"] == "Independent Apothecary"

def test_profession_is_permanent(service, caplog):
    assert service.choose_profession("alchemist", 10)
    assert not service.choose_profession("herbalist", 12)

    assert service.chosen_profession is ProfessionId.ALCHEMIST
    assert "already chosen" in caplog.text

def test_choice_gated_on_level(service):
    assert not service.choose_profession("surgeon")
    assert not service.choose_profession("surgeon", 4)
    assert service.chosen_profession is None

def test_unknown_profession_rejected(service):
    service.award_xp(50)
    assert not service.choose_profession("wizard")
    assert not service.choose_profession(None)
    assert service.chosen_profession is None

def test_scholar_xp_multiplier(service):
    service.award_xp(50)
    service.choose_profession("scholar")

    # 60 x 1.25 = 75, exactly one level at 5
    assert service.award_xp(60) == 1
    assert service.level == 6
    assert service.xp == 0
    assert service.total_xp == 50 + 75

def test_abilities_unlock_on_level_up(service, recorder):
    service.award_xp(50)
    service.choose_profession("surgeon")
    events = recorder.watch(ProgressionEvent.ABILITY_UNLOCKED)

    service.award_xp(5 * 75)

    assert service.level == 10
    assert [e["ability"].name for e in events] == ["Higher Fees"]
    assert [a.unlock_level for a in service.unlocked_abilities()] == [5, 10]
    assert service.modifier("surgeryPaymentMultiplier") == 1.5
    assert service.modifier("xpMultiplier") is None
    assert service.modifier_or_default("xpMultiplier") == 1.0
    assert service.modifiers().get("bloodlettingDCReduction") == 2

def test_master_title_change(event_bus, recorder):
    service = make_service(event_bus, level=49, profession=Chosen(profession="surgeon"))
    events = recorder.watch(ProgressionEvent.TITLE_CHANGED)

    service.award_xp(200)

    assert service.title == "Master Surgeon"
    assert events[0]["title"] == "Master Surgeon"
    assert events[0]["previous_title"] == "Surgeon"

def test_skill_xp_levels_known_skill(service, recorder):
    events = recorder.watch(ProgressionEvent.SKILL_LEVEL_UP)

    service.award_xp(10, skill_id="herbalism")
    assert service.state.known_skills["herbalism"].xp == 10

    service.award_xp(10, skill_id="herbalism")
    assert service.skill_level("herbalism") == 5
    assert service.state.known_skills["herbalism"].xp == 0
    assert events[0]["skill_id"] == "herbalism"

def test_skill_xp_stops_at_max_level(service):
    assert not service.award_skill_xp("literacy", 100)
    assert service.skill_level("literacy") == 5

def test_skill_xp_multiplier():
    service = make_service(
        level=10,
        profession=Chosen(profession="scholar"),
        known_skills={"latin": SkillProgress(level=1)},
    )

    # 10 x 1.5 = 15 of 25
    assert not service.award_skill_xp("latin", 10)
    assert service.state.known_skills["latin"].xp == 15
    assert service.award_skill_xp("latin", 10)
    assert service.skill_level("latin") == 2

def test_learning_a_skill(service, recorder):
    events = recorder.watch(ProgressionEvent.SKILL_LEARNED)
    service.award_xp(50)

    assert service.start_learning_skill("theft")
    assert service.skill_points == 0
    assert service.state.learning_skills == {"theft": 0}

    assert not service.award_skill_xp("theft", 20)
    assert service.state.learning_skills == {"theft": 20}
    assert service.award_skill_xp("theft", 10)

    assert service.skill_level("theft") == 1
    assert service.state.learning_skills == {}
    assert events[0]["skill_id"] == "theft"

def test_start_learning_rejections(service):
    assert not service.start_learning_skill("theft")  # no points
    service.award_xp(50)
    assert not service.start_learning_skill("anatomy")  # already known
    assert not service.start_learning_skill("juggling")  # unknown
    assert service.start_learning_skill("theft")
    assert not service.start_learning_skill("theft")

def test_skill_xp_for_untouched_skill_is_ignored(service):
    assert not service.award_skill_xp("theft", 50)
    assert service.skill_level("theft") == 0
    assert not service.award_skill_xp("juggling", 50)
    assert not service.award_skill_xp("anatomy", -5)

def test_spend_skill_point(service):
    assert not service.spend_skill_point("anatomy")  # no points
    service.award_xp(50 + 75)

    assert service.spend_skill_point("anatomy")
    assert service.skill_level("anatomy") == 4
    assert not service.spend_skill_point("literacy")  # max level
    assert not service.spend_skill_point("theft")  # unknown to player
    assert service.spend_skill_point("anatomy")
    assert service.skill_points == 0

def test_state_is_a_copy(service):
    state = service.state
    state.level = 50
    state.known_skills["anatomy"].level = 5

    assert service.level == 4
    assert service.skill_level("anatomy") == 3

def test_player_argument_is_copied():
    player = PlayerProgression(level=7)
    service = ProgressionService(player=player)
    service.award_xp(75)

    assert service.level == 8
    assert player.level == 7

def test_affinity_from_player_skills(service):
    scores = service.affinity_scores()
    assert scores[ProfessionId.SCHOLAR] == 12.5
    assert service.recommendations(1)[0].profession is ProfessionId.SCHOLAR

def test_skill_check(service, scripted_rng):
    scripted_rng.queue(10)
    result = service.skill_check("anatomy", 15)

    assert result.skill_level == 3
    assert result.total == 16
    assert result.success

    untrained = service.skill_check("lockpicking", 5)
    assert not untrained.success
    assert untrained.roll == 0

def test_quest_ledger_shares_event_bus(service, recorder):
    from apothecary.progression.quests import QuestEvent
    events = recorder.watch(QuestEvent.PROPOSED)

    service.ledger.propose(Quest(id="q1"))
    assert len(events) == 1

def test_save_data_round_trip(service):
    service.award_xp(200, skill_id="anatomy")
    service.choose_profession("poisoner")
    service.ledger.propose(Quest(id="q1", template_id="smuggle"))
    service.ledger.complete("q1")
    service.ledger.set_cooldown("smuggle", 3)

    restored = ProgressionService()
    assert restored.load_save_data(service.get_save_data())

    assert restored.level == service.level
    assert restored.xp == service.xp
    assert restored.chosen_profession is ProfessionId.POISONER
    assert restored.skill_level("anatomy") == service.skill_level("anatomy")
    assert restored.ledger.status_of("q1") is QuestStatus.COMPLETED
    assert restored.ledger.cooldown_for("smuggle") == 3
    assert restored.title == service.title

def test_bad_save_data_keeps_state(service, caplog):
    service.award_xp(60)

    assert not service.load_save_data({})
    assert not service.load_save_data({"player": "level 12"})
    assert not service.load_save_data({"player": {"__type__": "PlayerProgression", "level": 0}})
    assert not service.load_save_data({"player": {"__type__": "SkillProgress", "level": 1}})

    assert service.level == 5
    assert service.xp == 10

@pytest.mark.parametrize("amount", [float("inf"), float("-inf"), float("nan"), None, [50]])
def test_non_finite_xp_is_ignored(service, amount, caplog):
    assert service.award_xp(amount) == 0
    assert not service.award_skill_xp("anatomy", amount)
    assert service.level == 4
    assert service.total_xp == 0
    assert "Ignoring" in caplog.text

def test_overflowing_multiplied_xp_is_ignored():
    service = make_service(level=30, profession=Chosen(profession="scholar"))

    # finite alone, infinite after the 2.0 multiplier
    assert service.award_xp(1e308) == 0
    assert service.level == 30
    assert service.total_xp == 0

def test_unhashable_ids_are_rejected(service):
    service.award_xp(50)

    assert service.skill_level(["anatomy"]) == 0
    assert not service.award_skill_xp(["anatomy"], 10)
    assert not service.start_learning_skill({"id": "theft"})
    assert not service.spend_skill_point(["anatomy"])
    assert not service.choose_profession(["surgeon"])
    assert service.skill_points == 1
    assert not service.skill_check(["anatomy"], 5).success

def test_load_with_malformed_quests_keeps_player(service):
    data = service.get_save_data()
    data["quests"] = ["q1"]

    restored = ProgressionService()
    assert restored.load_save_data(data)
    assert restored.level == service.level
    assert restored.ledger.active() == []
