from unittest.mock import patch

from sqlmodel import select

from rap_dashboard.core.exceptions import StoreError
from rap_dashboard.models.audit import AuditLogEntry
from rap_dashboard.models.contact import LinkedInContact, EmailContact, WebinarAttendee
from rap_dashboard.models.metrics import CampaignMetric, RawDataImport


def rows(sync_session, model):
    sync_session.expire_all()
    return sync_session.exec(select(model)).all()


def test_linkedin_contacts_use_metadata_defaults(client, sync_session):
    resp = client.post("/api/integrations/from-n8n", json={
        "dataType": "linkedin_contacts",
        "data": [
            {"fullName": "A", "profileUrl": "https://linkedin.com/in/a"},
            {"name": "B", "campaignId": "own-campaign"},
        ],
        "metadata": {"campaignId": "meta-campaign", "datasetId": "n8n-spring"},
    })

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["dataType"] == "linkedin_contacts"
    assert body["processedRecords"] == 2
    assert len(body["insertedIds"]) == 2

    contacts = {c.name: c for c in rows(sync_session, LinkedInContact)}
    assert contacts["A"].campaign_id == "meta-campaign"
    assert contacts["B"].campaign_id == "own-campaign"
    assert contacts["A"].dataset_id == "n8n-spring"


def test_repeated_linkedin_delivery_does_not_duplicate(client, sync_session):
    payload = {"dataType": "linkedin_contacts", "data": {"name": "A", "linkedinUrl": "https://linkedin.com/in/a"}}
    client.post("/api/integrations/from-n8n", json=payload)
    client.post("/api/integrations/from-n8n", json=payload)

    assert len(rows(sync_session, LinkedInContact)) == 1


def test_single_email_object(client, sync_session):
    resp = client.post("/api/integrations/from-n8n", json={
        "dataType": "email-contacts",
        "data": {"name": "A", "emailAddress": "a@x.io", "wasOpened": True},
    })

    assert resp.status_code == 200
    contact = rows(sync_session, EmailContact)[0]
    assert contact.opened is True
    assert contact.campaign_name == "n8n Campaign"
    assert contact.dataset_id == "n8n-import"


def test_webinar_attendees(client, sync_session):
    client.post("/api/integrations/from-n8n", json={
        "dataType": "webinar_attendees",
        "data": [{"name": "A", "email": "a@x.io", "rsvpStatus": "Confirmed"}],
        "metadata": {"webinarId": "w-42"},
    })

    attendee = rows(sync_session, WebinarAttendee)[0]
    assert attendee.rsvp_status == "confirmed"
    assert attendee.webinar_id == "w-42"


def test_campaign_metrics_stored_generically(client, sync_session):
    resp = client.post("/api/integrations/from-n8n", json={
        "dataType": "campaign_metrics",
        "data": [{"campaignId": "c1", "metricType": "clicks", "value": "12"}],
    })

    assert resp.status_code == 200
    metric = rows(sync_session, CampaignMetric)[0]
    assert metric.metric_type == "clicks"
    assert metric.metric_value == 12.0
    assert metric.raw_data == {"campaignId": "c1", "metricType": "clicks", "value": "12"}


def test_raw_data_falls_back_to_log_when_store_fails(client, sync_session):
    with patch(
        "rap_dashboard.services.store_writer.StoreWriter.append_many",
        side_effect=StoreError("Bulk insert into raw_data_imports", "no such table"),
    ):
        resp = client.post("/api/integrations/from-n8n", json={
            "dataType": "raw_data",
            "data": [{"anything": 1}, {"anything": 2}],
        })

    assert resp.status_code == 200
    assert resp.json()["processedRecords"] == 2
    assert resp.json()["insertedIds"] == []
    assert rows(sync_session, RawDataImport) == []


def test_missing_fields_is_400(client, sync_session):
    resp = client.post("/api/integrations/from-n8n", json={"dataType": "raw_data"})

    assert resp.status_code == 400
    entry = rows(sync_session, AuditLogEntry)[0]
    assert entry.source == "n8n"
    assert entry.status == "error"


def test_unknown_data_type_lists_supported(client):
    resp = client.post("/api/integrations/from-n8n", json={"dataType": "leads", "data": []})

    assert resp.status_code == 400
    assert "linkedin_contacts" in resp.json()["message"]


def test_health(client):
    resp = client.get("/api/integrations/health")
    assert resp.status_code == 200
    assert resp.json()["service"] == "n8n-integration"


def test_recent_imports(client):
    client.post("/api/integrations/from-n8n", json={"dataType": "raw_data", "data": {"a": 1}})
    client.post("/api/integrations/from-n8n", json={"dataType": "raw_data", "data": {"a": 2}})
    client.post("/api/data/process", json={"fileData": [{"name": "A"}], "campaignType": "linkedin"})

    resp = client.get("/api/integrations/recent-imports", params={"limit": 1})

    assert resp.status_code == 200
    body = resp.json()
    assert body["count"] == 1
    assert body["imports"][0]["source"] == "n8n"
    assert body["imports"][0]["data"]["data"] == {"a": 2}


def test_custom_producer_source_stays_in_imports_feed(client, sync_session):
    resp = client.post("/api/integrations/from-n8n", json={
        "dataType": "raw_data",
        "data": {"a": 1},
        "source": "zapier",
    })
    assert resp.status_code == 200

    entries = rows(sync_session, AuditLogEntry)
    assert [e.source for e in entries] == ["n8n"]
    assert entries[0].data["source"] == "zapier"

    recent = client.get("/api/integrations/recent-imports").json()
    assert recent["count"] == 1
