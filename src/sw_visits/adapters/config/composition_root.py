from dependency_injector import containers, providers

container = None


def setup_di_container_from_settings(settings):
    """Builds the visits/claims container on top of the members container."""
    global container  # noqa: PLW0603
    if container is not None:
        return container

    # ------- imports that touch Django models -------
    import structlog

    from calaim_api.tasks import enqueue_flagged_visit_alert
    from members_core.adapters.config import composition_root as members_root
    from members_core.core.application.cqrs import CommandBusImpl, QueryBusImpl
    from sw_visits.adapters.notifiers.registry import get_email_notifier
    from sw_visits.adapters.repositories.claim_repo_impl import ClaimRepoImpl
    from sw_visits.adapters.repositories.monthly_lock_repo_impl import MonthlyVisitLockRepoImpl
    from sw_visits.adapters.repositories.visit_repo_impl import VisitRepoImpl
    from sw_visits.core.application.commands.claim_commands import (
        SubmitClaimCommand,
        UpdateClaimStatusCommand,
    )
    from sw_visits.core.application.commands.visit_commands import (
        SignOffVisitsCommand,
        SubmitVisitCommand,
    )
    from sw_visits.core.application.handlers.claim_handlers import (
        GetClaimHandler,
        ListClaimsHandler,
        SubmitClaimHandler,
        UpdateClaimStatusHandler,
    )
    from sw_visits.core.application.handlers.visit_handlers import (
        ListVisitsHandler,
        SignOffVisitsHandler,
        SubmitVisitHandler,
    )
    from sw_visits.core.application.queries.claim_queries import (
        GetClaimQuery,
        ListClaimsQuery,
        ListVisitsQuery,
    )
    from sw_visits.core.application.services.claim_aggregator import ClaimAggregator
    from sw_visits.core.application.services.claim_lifecycle_service import ClaimLifecycleService
    from sw_visits.core.application.services.staff_notification_resolver import StaffNotificationResolver
    from sw_visits.core.application.services.visit_ingestion_service import VisitIngestionService
    from sw_visits.core.application.services.visit_notification_service import VisitNotificationService
    from sw_visits.core.application.services.visit_signoff_service import VisitSignOffService

    members = members_root.setup_di_container_from_settings(settings)

    class Container(containers.DeclarativeContainer):
        config = providers.Configuration()

        logger           = providers.Singleton(structlog.get_logger)
        event_dispatcher = providers.Object(members.event_dispatcher())

        # CQRS
        command_bus = providers.Singleton(CommandBusImpl, dispatcher=event_dispatcher)
        query_bus   = providers.Singleton(QueryBusImpl)

        # Shared with the members container
        members_cache   = providers.Object(members.members_cache())
        staff_directory = providers.Object(members.staff_directory())

        # Repositories
        visit_repo = providers.Singleton(VisitRepoImpl)
        lock_repo  = providers.Singleton(MonthlyVisitLockRepoImpl)
        claim_repo = providers.Singleton(ClaimRepoImpl)

        # Notifications
        notifier_factory   = providers.Object(get_email_notifier)
        contact_resolver   = providers.Singleton(StaffNotificationResolver, staff_directory=staff_directory)
        visit_notifications = providers.Singleton(
            VisitNotificationService,
            resolver=contact_resolver,
            notifier_factory=notifier_factory,
            supervisor_emails=config.notifications.supervisor_emails,
        )
        alert_publisher = providers.Object(enqueue_flagged_visit_alert)

        # Services
        aggregator = providers.Singleton(
            ClaimAggregator,
            claim_repo=claim_repo,
            visit_repo=visit_repo,
            lock_repo=lock_repo,
            fee_rate=config.claims.fee_rate,
            gas_rate=config.claims.gas_rate,
        )
        ingestion = providers.Singleton(
            VisitIngestionService,
            members_cache=members_cache,
            visit_repo=visit_repo,
            lock_repo=lock_repo,
            aggregator=aggregator,
            alert_publisher=alert_publisher,
            staff_directory=staff_directory,
            dispatcher=event_dispatcher,
            low_score_threshold=config.visits.low_score_threshold,
            auth_expiry_plans=config.visits.auth_expiry_plans,
        )
        signoff   = providers.Singleton(VisitSignOffService, visit_repo=visit_repo, dispatcher=event_dispatcher)
        lifecycle = providers.Singleton(
            ClaimLifecycleService, claim_repo=claim_repo, visit_repo=visit_repo, dispatcher=event_dispatcher
        )

        # Handlers
        submit_visit_handler   = providers.Factory(SubmitVisitHandler, ingestion=ingestion)
        signoff_handler        = providers.Factory(SignOffVisitsHandler, signoff=signoff)
        submit_claim_handler   = providers.Factory(SubmitClaimHandler, lifecycle=lifecycle)
        claim_status_handler   = providers.Factory(UpdateClaimStatusHandler, lifecycle=lifecycle)
        list_claims_handler    = providers.Factory(ListClaimsHandler, lifecycle=lifecycle)
        get_claim_handler      = providers.Factory(GetClaimHandler, lifecycle=lifecycle)
        list_visits_handler    = providers.Factory(ListVisitsHandler, visit_repo=visit_repo)

        def init(self):
            cmd_bus = self.command_bus()
            cmd_bus.register(SubmitVisitCommand, self.submit_visit_handler())
            cmd_bus.register(SignOffVisitsCommand, self.signoff_handler())
            cmd_bus.register(SubmitClaimCommand, self.submit_claim_handler())
            cmd_bus.register(UpdateClaimStatusCommand, self.claim_status_handler())

            qry_bus = self.query_bus()
            qry_bus.register(ListClaimsQuery, self.list_claims_handler())
            qry_bus.register(GetClaimQuery, self.get_claim_handler())
            qry_bus.register(ListVisitsQuery, self.list_visits_handler())

    # ------- instantiation -------
    container = Container()
    container.config.claims.fee_rate.from_value(settings.VISIT_FEE_RATE)
    container.config.claims.gas_rate.from_value(settings.GAS_FLAT_RATE)
    container.config.visits.low_score_threshold.from_value(settings.VISIT_LOW_SCORE_THRESHOLD)
    container.config.visits.auth_expiry_plans.from_value(list(settings.AUTH_EXPIRY_PLANS))
    container.config.notifications.supervisor_emails.from_value(list(settings.SUPERVISOR_ALERT_EMAILS))
    Container.init(container)
    return container
