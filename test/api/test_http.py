from countdown.utils.misc import datetime_to_str


def create(client, name="tea", delay="5"):
    return client.post("/start", data={"name": name, "delay": delay}, follow_redirects=False)


def test_home_without_jobs(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert "Countdown History (Last 10)" in response.text
    assert "No delays recorded yet." in response.text
    assert 'href="/start"' in response.text


def test_start_form_is_served(client):
    response = client.get("/start")
    assert response.status_code == 200
    assert 'name="delay"' in response.text
    assert 'min="1"' in response.text


def test_start_creates_job_and_redirects_home(client, service):
    response = create(client, "tea", "180")
    assert response.status_code == 303
    assert response.headers["location"] == "/"

    job = service.get_job(1)
    assert job.name == "tea"
    assert job.total_delay_seconds == 180

    home = client.get("/").text
    assert '<a href="/status/1">1</a>' in home
    assert "tea" in home
    assert datetime_to_str(job.created_at) in home
    assert datetime_to_str(job.expected_completion) in home
    assert 'class="status-progress">in-progress' in home


def test_start_rejects_invalid_delay(client, service):
    for delay in ["abc", "0", "-3", ""]:
        response = create(client, "bad", delay)
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid delay value"
    assert service.list_jobs() == []


def test_home_escapes_job_names(client):
    create(client, "<b>bold</b>", "5")
    home = client.get("/").text
    assert "&lt;b&gt;bold&lt;/b&gt;" in home
    assert "<b>bold</b>" not in home


def test_home_lists_only_the_last_ten_in_creation_order(client):
    for i in range(12):
        create(client, f"job-{i}", "30")

    home = client.get("/").text
    assert 'href="/status/1"' not in home
    assert 'href="/status/2"' not in home
    positions = [home.index(f'href="/status/{job_id}"') for job_id in range(3, 13)]
    assert positions == sorted(positions)


def test_status_detail(client, manual_clock):
    create(client, "eggs", "10")
    manual_clock.advance(3)

    page = client.get("/status/1").text
    assert "Status for Job ID: 1 (eggs)" in page
    assert "Status: <strong>in-progress</strong>" in page
    assert "Remaining Time: 7 seconds" in page
    assert "Total Delay Requested: 10 seconds" in page

    manual_clock.advance(10)
    page = client.get("/status/1").text
    assert "Status: <strong>completed</strong>" in page
    assert "Remaining Time" not in page


def test_status_detail_errors(client):
    bad = client.get("/status/abc")
    assert bad.status_code == 400
    assert bad.json()["detail"] == "Invalid request URL format. Use /status/<ID>"

    missing = client.get("/status/99")
    assert missing.status_code == 404
    assert missing.json()["detail"] == "Job ID 99 not found."


def test_status_index_messages(client, service, manual_clock):
    assert "No countdowns activated." in client.get("/status").text

    create(client, "tea", "60")
    manual_clock.advance(15)
    page = client.get("/status").text
    assert "1 - tea" in page
    assert "in-progress, remaining time 45 seconds" in page

    service.registry.mark_completed(1, manual_clock.now())
    page = client.get("/status").text
    assert "All queued tasks are completed." in page
    assert "1 - tea" not in page


def test_api_list_includes_derived_fields(client, manual_clock):
    create(client, "tea", "10")
    create(client, "eggs", "20")
    manual_clock.advance(12)

    payload = client.get("/api/status").json()
    by_id = {item["id"]: item for item in payload}
    assert set(by_id) == {1, 2}

    tea = by_id[1]
    assert tea["name"] == "tea"
    assert tea["totalDelaySeconds"] == 10
    assert tea["status"] == "completed"
    assert tea["elapsedTimeSeconds"] == 10
    assert tea["remainingTimeSeconds"] == 0
    assert "completedTime" not in tea
    assert "dateTimeAdded" in tea

    eggs = by_id[2]
    assert eggs["status"] == "in-progress"
    assert eggs["elapsedTimeSeconds"] == 12
    assert eggs["remainingTimeSeconds"] == 8


def test_api_detail_reports_completed_time(client, service, manual_clock):
    create(client, "tea", "10")
    manual_clock.advance(10)
    service.registry.mark_completed(1, manual_clock.now())

    payload = client.get("/api/status/1").json()
    assert payload["status"] == "completed"
    assert "completedTime" in payload


def test_api_detail_errors(client):
    assert client.get("/api/status/nope").status_code == 400
    missing = client.get("/api/status/5")
    assert missing.status_code == 404
    assert missing.json()["detail"] == "Job ID 5 not found."


def test_api_list_after_eviction(client):
    for i in range(12):
        create(client, f"job-{i}", "30")
    ids = sorted(item["id"] for item in client.get("/api/status").json())
    assert ids == list(range(3, 13))
    assert client.get("/api/status/1").status_code == 404


def test_api_create_job(client):
    response = client.post("/api/jobs", json={"name": "pasta", "delay": 540})
    assert response.status_code == 201
    body = response.json()
    assert body["id"] == 1
    assert body["status"] == "in-progress"
    assert body["remainingTimeSeconds"] == 540

    assert client.post("/api/jobs", json={"name": "bad", "delay": 0}).status_code == 400
    assert client.post("/api/jobs", json={"name": "bad"}).status_code == 422


def test_health(client):
    create(client, "tea", "30")
    body = client.get("/health").json()
    assert body["ok"] is True
    assert body["service"]["running"] is True
    assert body["service"]["job_count"] == 1
    assert body["service"]["max_history"] == 10
    assert body["service"]["next_job_id"] == 2
    assert body["service"]["pending_timers"] == 1


def test_websocket_streams_snapshot_and_events(client):
    create(client, "first", "30")
    with client.websocket_connect("/ws/countdowns") as websocket:
        snapshot = websocket.receive_json()
        assert snapshot["type"] == "snapshot"
        assert [job["id"] for job in snapshot["jobs"]] == [1]

        create(client, "second", "30")
        event = websocket.receive_json()
        assert event["type"] == "created"
        assert event["job"]["name"] == "second"


def test_api_create_rejects_non_integer_delays(client, service):
    for delay in [True, 2.0, "7", "abc", None]:
        response = client.post("/api/jobs", json={"name": "loose", "delay": delay})
        assert response.status_code == 400, delay
        assert response.json()["detail"] == "Invalid delay value"
    assert service.list_jobs() == []


def test_status_index_rounds_fractional_remaining_time(client, manual_clock):
    create(client, "tea", "60")
    manual_clock.advance(15.6)
    page = client.get("/status").text
    assert "in-progress, remaining time 44 seconds" in page

    # The detail page keeps whole elapsed seconds.
    assert "Remaining Time: 45 seconds" in client.get("/status/1").text


def test_websocket_ignores_binary_client_frames(client):
    with client.websocket_connect("/ws/countdowns") as websocket:
        assert websocket.receive_json()["type"] == "snapshot"
        websocket.send_bytes(b"\x00\x01")

        create(client, "after-binary", "30")
        event = websocket.receive_json()
        assert event["type"] == "created"
        assert event["job"]["name"] == "after-binary"
