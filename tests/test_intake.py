"""Tests for contact-form proposals and returning-client project requests."""

import re

import pytest
from fastapi import HTTPException

from brandboost import intake, projects
from brandboost.models import MessageStatus, ProjectStatus, ProjectType
from brandboost.planner import DEFAULT_PHASES
from brandboost.store import PROJECT_REQUESTS


@pytest.fixture
def message(services):
    return intake.save_contact_message(
        services,
        name="Ann Client",
        email="ann@bakery.com",
        description="We need a logo for our bakery.",
        company="Ann's Bakery",
        service="Branding",
        budget="$5k",
    )


class TestContactMessages:
    def test_proposal_id_format(self, message):
        assert re.fullmatch(r"BB-[0-9A-F]{8}", message.proposal_id)
        assert message.status == MessageStatus.NEW

    def test_confirmation_email(self, mailer, message):
        assert mailer.sent[-1]["to"] == ["ann@bakery.com"]
        assert message.proposal_id in mailer.sent[-1]["subject"]

    def test_saved_even_when_email_fails(self, services, mailer):
        mailer.status_code = 500
        saved = intake.save_contact_message(services, "Bo", "bo@shop.com", "A website please")
        assert intake.get_message(services.store, saved.id).name == "Bo"

    def test_status_change(self, services, message):
        intake.set_message_status(services, message.id, MessageStatus.CONTACTED)
        contacted = intake.list_messages(services.store, MessageStatus.CONTACTED)
        assert [m.id for m in contacted] == [message.id]

    def test_missing_message(self, services):
        with pytest.raises(HTTPException) as excinfo:
            intake.get_message(services.store, "nope")
        assert excinfo.value.status_code == 404


class TestConvertMessage:
    def test_creates_running_project(self, services, mailer, designer, message):
        project = intake.convert_message_to_project(services, message.id, "Bakery Identity", [designer.name])
        assert project.status == ProjectStatus.IN_PROGRESS
        assert project.client == "Ann's Bakery"
        assert project.client_email == "ann@bakery.com"
        assert project.project_type == ProjectType.BRANDING
        assert intake.get_message(services.store, message.id).status == MessageStatus.CONVERTED
        assert mailer.sent[-1]["subject"] == "Your project Bakery Identity has started"

    def test_unknown_service_maps_to_other(self, services, designer):
        message = intake.save_contact_message(services, "Cy", "cy@firm.com", "Something", service="Podcast")
        project = intake.convert_message_to_project(services, message.id, "Podcast Art", [designer.name])
        assert project.project_type == ProjectType.OTHER

    def test_cannot_convert_twice(self, services, designer, message):
        intake.convert_message_to_project(services, message.id, "Bakery Identity", [designer.name])
        with pytest.raises(HTTPException) as excinfo:
            intake.convert_message_to_project(services, message.id, "Again", [designer.name])
        assert excinfo.value.status_code == 409


class TestProjectRequests:
    def test_request_from_portal(self, services, started_project):
        request = intake.create_request(services, started_project.id, "Now a website")
        assert request.client_name == started_project.client
        assert request.client_email == started_project.client_email
        assert request.status.value == "Pending"

    def test_empty_request_rejected(self, services, started_project):
        with pytest.raises(HTTPException) as excinfo:
            intake.create_request(services, started_project.id, " ")
        assert excinfo.value.status_code == 400

    def test_approve_creates_project_and_removes_request(self, services, mailer, designer, started_project):
        request = intake.create_request(services, started_project.id, "Now a website")
        project = intake.approve_request(
            services, request.id, "Acme Website", [designer.name], project_type=ProjectType.WEB_DESIGN
        )
        assert project.status == ProjectStatus.IN_PROGRESS
        assert [t.text for t in project.tasks] == DEFAULT_PHASES
        assert project.notifications[0].text == "Project created from returning client request."
        assert services.store.get(PROJECT_REQUESTS, request.id) is None
        assert projects.get_project(services.store, project.id).project_type == ProjectType.WEB_DESIGN
        assert mailer.sent[-1]["to"] == ["owner@acme.com"]

    def test_delete_request(self, services, started_project):
        request = intake.create_request(services, started_project.id, "Now a website")
        intake.delete_request(services, request.id)
        assert intake.list_requests(services.store) == []
