from appliance_jobs.domain.scheduling import (
    JobType,
    all_items,
    checklist_progress,
    templates_for,
    toggled,
)


def test_delivery_templates():
    names = [t.name for t in templates_for(JobType.DELIVERY)]
    assert names == ["Delivery Checklist"]


def test_installation_add_on_and_post_tinkering_order():
    names = [t.name for t in templates_for(JobType.DELIVERY, True, True)]
    assert names == ["Delivery Checklist", "Installation Checklist", "Post-Tinkering"]


def test_installation_add_on_ignored_for_pickup():
    names = [t.name for t in templates_for(JobType.PICKUP, includes_installation=True)]
    assert names == ["Pickup Checklist"]


def test_legacy_installation_job_gets_installation_template():
    names = [t.name for t in templates_for(JobType.INSTALLATION)]
    assert names == ["Installation Checklist"]


def test_all_items_flattens_in_order():
    items = all_items(JobType.DELIVERY, includes_installation=True)
    assert items[0] == "Ramp"
    assert items[-3:] == ["Screwdriver", "Impact with drills bit", "Channel Lock Pliers"]
    assert len(items) == 13


def test_toggle_is_an_involution():
    checked = ["Ramp"]
    once = toggled(checked, "Dolly")
    assert once == ["Ramp", "Dolly"]
    assert toggled(once, "Dolly") == checked
    # input is not mutated
    assert checked == ["Ramp"]


def test_progress():
    items = all_items(JobType.PICKUP)
    assert checklist_progress([], items) == 0.0
    assert checklist_progress(items, items) == 1.0
    assert checklist_progress(["Cash"], items) == 1 / 7


def test_progress_ignores_items_not_in_checklist():
    items = all_items(JobType.PICKUP)
    assert checklist_progress(["Screwdriver"], items) == 0.0


def test_empty_checklist_counts_as_complete():
    assert checklist_progress([], []) == 1.0
