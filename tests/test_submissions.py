from coursework.models.assignment import Assignment
from coursework.models.submission import Submission
from tests.conftest import auth_header


def submit(client, seed, assignment_id=None, user_id=None, **body):
    return client.post(
        f"/assignments/{assignment_id or seed.hw1}/submissions",
        headers=auth_header(user_id or seed.student),
        json=body or {"answer_text": "my answer"},
    )


def test_enrolled_student_submits_published_assignment(client, seed):
    r = submit(client, seed)
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["status"] == "submitted"
    assert body["user_id"] == seed.student
    assert body["submitted_at"] is not None
    assert body["score"] is None


def test_draft_submission_stays_pending(client, seed):
    r = submit(client, seed, answer_text="wip", submit=False)
    assert r.status_code == 201, r.text
    assert r.json()["status"] == "pending"
    assert r.json()["submitted_at"] is None


def test_submission_after_due_date_is_stored_late(client, seed):
    r = submit(client, seed, assignment_id=seed.past)
    assert r.status_code == 201, r.text
    assert r.json()["status"] == "late"


def test_not_enrolled_student_is_denied(client, seed):
    r = submit(client, seed, user_id=seed.outsider)
    assert r.status_code == 403
    assert r.json()["error"] == "authorization_denied"


def test_inactive_enrollment_is_denied(client, seed):
    r = submit(client, seed, user_id=seed.dropped)
    assert r.status_code == 403


def test_unpublished_assignment_is_denied(client, seed):
    r = submit(client, seed, assignment_id=seed.draft)
    assert r.status_code == 403


def test_missing_assignment_is_not_found(client, seed):
    r = submit(client, seed, assignment_id=999999)
    assert r.status_code == 404
    assert r.json()["error"] == "not_found"


def test_second_submission_for_same_pair_fails(client, seed, db):
    assert submit(client, seed).status_code == 201

    r = submit(client, seed, answer_text="again")
    assert r.status_code == 409
    body = r.json()
    assert body["error"] == "unique_violation"
    assert body["field"] == "assignment_id,user_id"

    rows = db.query(Submission).filter(Submission.assignment_id == seed.hw1).count()
    assert rows == 1


def test_student_can_edit_before_grading(client, seed):
    sub_id = submit(client, seed, submit=False).json()["id"]

    r = client.patch(
        f"/submissions/{sub_id}",
        headers=auth_header(seed.student),
        json={"answer_text": "final answer", "submit": True},
    )
    assert r.status_code == 200, r.text
    assert r.json()["answer_text"] == "final answer"
    assert r.json()["status"] == "submitted"


def test_student_cannot_edit_after_grading(client, seed):
    sub_id = submit(client, seed).json()["id"]

    graded = client.patch(
        f"/submissions/{sub_id}/grade",
        headers=auth_header(seed.teacher),
        json={"score": 90, "feedback": "good"},
    )
    assert graded.status_code == 200, graded.text
    assert graded.json()["status"] == "graded"

    r = client.patch(
        f"/submissions/{sub_id}",
        headers=auth_header(seed.student),
        json={"answer_text": "sneaky edit"},
    )
    assert r.status_code == 403


def test_score_out_of_range_is_rejected(client, seed, db):
    sub_id = submit(client, seed).json()["id"]

    r = client.patch(
        f"/submissions/{sub_id}/grade",
        headers=auth_header(seed.teacher),
        json={"score": 150},
    )
    assert r.status_code == 422
    assert r.json()["field"] == "score"

    r = client.patch(
        f"/submissions/{sub_id}/grade",
        headers=auth_header(seed.teacher),
        json={"score": -1},
    )
    assert r.status_code == 422

    sub = db.get(Submission, sub_id)
    assert sub.score is None
    assert sub.status == "submitted"


def test_grading_sets_grader_metadata(client, seed):
    sub_id = submit(client, seed).json()["id"]

    r = client.patch(
        f"/submissions/{sub_id}/grade",
        headers=auth_header(seed.teacher),
        json={"score": 100, "feedback": "perfect", "status": "returned"},
    )
    body = r.json()
    assert r.status_code == 200, r.text
    assert body["score"] == 100
    assert body["status"] == "returned"
    assert body["graded_by"] == seed.teacher
    assert body["graded_at"] is not None


def test_other_instructor_cannot_touch_submissions(client, seed):
    sub_id = submit(client, seed).json()["id"]
    other = auth_header(seed.other_teacher)

    assert client.get(f"/submissions/{sub_id}", headers=other).status_code == 403
    assert client.get(f"/assignments/{seed.hw1}/submissions", headers=other).status_code == 403
    assert (
        client.patch(f"/submissions/{sub_id}/grade", headers=other, json={"score": 10}).status_code
        == 403
    )
    assert client.delete(f"/submissions/{sub_id}", headers=other).status_code == 403


def test_instructor_reads_lists_and_deletes(client, seed, db):
    sub_id = submit(client, seed).json()["id"]
    teacher = auth_header(seed.teacher)

    assert client.get(f"/submissions/{sub_id}", headers=teacher).status_code == 200

    listed = client.get(f"/assignments/{seed.hw1}/submissions", headers=teacher)
    assert listed.status_code == 200
    assert [s["id"] for s in listed.json()] == [sub_id]

    filtered = client.get(
        f"/assignments/{seed.hw1}/submissions", headers=teacher, params={"status": "graded"}
    )
    assert filtered.json() == []

    r = client.delete(f"/submissions/{sub_id}", headers=teacher)
    assert r.status_code == 204
    assert db.get(Submission, sub_id) is None


def test_student_cannot_delete_or_list(client, seed):
    sub_id = submit(client, seed).json()["id"]
    student = auth_header(seed.student)

    assert client.delete(f"/submissions/{sub_id}", headers=student).status_code == 403
    assert client.get(f"/assignments/{seed.hw1}/submissions", headers=student).status_code == 403


def test_other_student_cannot_read_submission(client, seed):
    sub_id = submit(client, seed).json()["id"]
    r = client.get(f"/submissions/{sub_id}", headers=auth_header(seed.outsider))
    assert r.status_code == 403


def test_admin_can_grade_any_course(client, seed):
    sub_id = submit(client, seed).json()["id"]
    r = client.patch(
        f"/submissions/{sub_id}/grade",
        headers=auth_header(seed.admin),
        json={"score": 70},
    )
    assert r.status_code == 200, r.text
    assert r.json()["graded_by"] == seed.admin


def test_grade_hidden_from_student_until_returned(client, seed):
    sub_id = submit(client, seed).json()["id"]
    teacher = auth_header(seed.teacher)
    student = auth_header(seed.student)

    client.patch(f"/submissions/{sub_id}/grade", headers=teacher, json={"score": 85, "feedback": "ok"})

    hidden = client.get(f"/submissions/{sub_id}", headers=student).json()
    assert hidden["status"] == "graded"
    assert hidden["score"] is None
    assert hidden["feedback"] is None

    r = client.post(f"/submissions/{sub_id}/return", headers=teacher)
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "returned"

    shown = client.get(f"/submissions/{sub_id}", headers=student).json()
    assert shown["score"] == 85
    assert shown["feedback"] == "ok"

    mine = client.get("/submissions/me", headers=student).json()
    assert [s["score"] for s in mine] == [85]


def test_return_requires_graded_status(client, seed):
    sub_id = submit(client, seed).json()["id"]
    r = client.post(f"/submissions/{sub_id}/return", headers=auth_header(seed.teacher))
    assert r.status_code == 422
    assert r.json()["field"] == "status"


def test_instructor_records_grade_without_submission(client, seed):
    r = client.put(
        f"/assignments/{seed.hw1}/submissions/{seed.student}/grade",
        headers=auth_header(seed.teacher),
        json={"score": 40, "status": "returned"},
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["user_id"] == seed.student
    assert body["submitted_at"] is None
    assert body["status"] == "returned"

    # the same endpoint updates the existing row instead of inserting a second one
    again = client.put(
        f"/assignments/{seed.hw1}/submissions/{seed.student}/grade",
        headers=auth_header(seed.teacher),
        json={"score": 45},
    )
    assert again.status_code == 200
    assert again.json()["id"] == body["id"]
    assert again.json()["score"] == 45


def test_recording_grade_for_unenrolled_student_fails(client, seed):
    r = client.put(
        f"/assignments/{seed.hw1}/submissions/{seed.outsider}/grade",
        headers=auth_header(seed.teacher),
        json={"score": 40},
    )
    assert r.status_code == 422
    assert r.json()["field"] == "user_id"


def test_deleting_assignment_cascades_submissions(client, seed, db):
    sub_id = submit(client, seed).json()["id"]

    r = client.delete(f"/assignments/{seed.hw1}", headers=auth_header(seed.teacher))
    assert r.status_code == 204

    db.expire_all()
    assert db.get(Assignment, seed.hw1) is None
    assert db.get(Submission, sub_id) is None


def test_grader_cannot_reopen_graded_submission(client, seed, db):
    sub_id = submit(client, seed).json()["id"]
    client.patch(f"/submissions/{sub_id}/grade", headers=auth_header(seed.teacher), json={"score": 90})

    r = client.patch(f"/submissions/{sub_id}", headers=auth_header(seed.teacher), json={"submit": True})
    assert r.status_code == 422
    assert r.json()["field"] == "status"

    r = client.patch(
        f"/submissions/{sub_id}",
        headers=auth_header(seed.student),
        json={"answer_text": "rewritten after grading"},
    )
    assert r.status_code == 403

    sub = db.get(Submission, sub_id)
    assert sub.status == "graded"
    assert sub.score == 90
    assert sub.answer_text == "my answer"
