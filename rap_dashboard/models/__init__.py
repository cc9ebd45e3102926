# Models package - canonical records and supporting tables
from rap_dashboard.models.dataset import Dataset
from rap_dashboard.models.contact import LinkedInContact, EmailContact, WebinarAttendee
from rap_dashboard.models.linkedin import LinkedInMessage, LinkedInProfileView, FollowUpTask
from rap_dashboard.models.audit import AuditLogEntry
from rap_dashboard.models.insight import Insight
from rap_dashboard.models.metrics import CampaignMetric, RawDataImport
