from dependency_injector import containers, providers

container = None


def _schedule_refresh(mode: str) -> bool:
    # imported lazily: the task module itself resolves this container
    from calaim_api.tasks import enqueue_members_refresh

    return enqueue_members_refresh(mode)


def setup_di_container_from_settings(settings):
    """Builds the members container once Django settings are loaded."""
    global container  # noqa: PLW0603
    if container is not None:
        return container

    # ------- imports that touch Django models -------
    import structlog

    from members_core.adapters.api_clients.caspio_api_client import CaspioAPIClient, CaspioTokenProvider
    from members_core.adapters.repositories.member_cache_repo_impl import MemberCacheRepoImpl
    from members_core.adapters.repositories.staff_directory_repo_impl import StaffDirectoryRepoImpl
    from members_core.adapters.repositories.sync_state_repo_impl import SyncStateRepoImpl
    from members_core.core.application.commands.sync_commands import (
        SyncMembersCacheCommand,
        UpsertStaffDirectoryCommand,
    )
    from members_core.core.application.cqrs import CommandBusImpl, QueryBusImpl
    from members_core.core.application.handlers.query_handlers import (
        GetMemberHandler,
        GetMembersCacheStatusHandler,
        ResolveAssignedMembersHandler,
    )
    from members_core.core.application.handlers.sync_handlers import (
        SyncMembersCacheHandler,
        UpsertStaffDirectoryHandler,
    )
    from members_core.core.application.queries.assignment_queries import (
        GetMemberQuery,
        GetMembersCacheStatusQuery,
        ResolveAssignedMembersQuery,
    )
    from members_core.core.application.services.assignment_resolver import AssignmentResolver
    from members_core.core.application.services.members_cache_service import MembersCacheService
    from members_core.core.application.services.staff_directory_service import StaffDirectoryService
    from members_core.core.domain.services.event_dispatcher import EventDispatcher

    class Container(containers.DeclarativeContainer):
        config = providers.Configuration()

        logger           = providers.Singleton(structlog.get_logger)
        event_dispatcher = providers.Singleton(EventDispatcher)

        # CQRS
        command_bus = providers.Singleton(CommandBusImpl, dispatcher=event_dispatcher)
        query_bus   = providers.Singleton(QueryBusImpl)

        # Caspio
        token_provider = providers.Singleton(
            CaspioTokenProvider,
            base_url=config.caspio.base_url,
            client_id=config.caspio.client_id,
            client_secret=config.caspio.client_secret,
            timeout=config.caspio.timeout,
        )
        caspio_client = providers.Singleton(
            CaspioAPIClient,
            base_url=config.caspio.base_url,
            members_table=config.caspio.members_table,
            timeout=config.caspio.timeout,
        )

        # Repositories
        member_repo          = providers.Singleton(MemberCacheRepoImpl)
        sync_state_repo      = providers.Singleton(SyncStateRepoImpl)
        staff_directory_repo = providers.Singleton(StaffDirectoryRepoImpl)

        # Services
        staff_directory = providers.Singleton(StaffDirectoryService, repo=staff_directory_repo)
        members_cache   = providers.Singleton(
            MembersCacheService,
            api_client=caspio_client,
            token_provider=token_provider,
            member_repo=member_repo,
            state_repo=sync_state_repo,
            dispatcher=event_dispatcher,
            refresh_scheduler=providers.Object(_schedule_refresh),
            page_size=config.sync.page_size,
            max_pages=config.sync.max_pages,
            ttl_seconds=config.sync.ttl_seconds,
        )
        assignment_resolver = providers.Singleton(
            AssignmentResolver,
            cache_service=members_cache,
            member_repo=member_repo,
            staff_directory=staff_directory,
            scan_page_size=config.assignments.scan_page_size,
            scan_max_rows=config.assignments.scan_max_rows,
            max_candidate_tokens=config.assignments.max_candidate_tokens,
            auth_expiry_plans=config.assignments.auth_expiry_plans,
        )

        # Handlers
        sync_members_cache_handler    = providers.Factory(SyncMembersCacheHandler, cache_service=members_cache)
        upsert_staff_directory_handler = providers.Factory(
            UpsertStaffDirectoryHandler, directory=staff_directory, dispatcher=event_dispatcher
        )
        resolve_assigned_handler  = providers.Factory(ResolveAssignedMembersHandler, resolver=assignment_resolver)
        cache_status_handler      = providers.Factory(GetMembersCacheStatusHandler, cache_service=members_cache)
        get_member_handler        = providers.Factory(GetMemberHandler, cache_service=members_cache)

        def init(self):
            cmd_bus = self.command_bus()
            cmd_bus.register(SyncMembersCacheCommand, self.sync_members_cache_handler())
            cmd_bus.register(UpsertStaffDirectoryCommand, self.upsert_staff_directory_handler())

            qry_bus = self.query_bus()
            qry_bus.register(ResolveAssignedMembersQuery, self.resolve_assigned_handler())
            qry_bus.register(GetMembersCacheStatusQuery, self.cache_status_handler())
            qry_bus.register(GetMemberQuery, self.get_member_handler())

    # ------- instantiation -------
    container = Container()
    container.config.caspio.base_url.from_value(settings.CASPIO_BASE_URL)
    container.config.caspio.client_id.from_value(settings.CASPIO_CLIENT_ID)
    container.config.caspio.client_secret.from_value(settings.CASPIO_CLIENT_SECRET)
    container.config.caspio.timeout.from_value(settings.CASPIO_TIMEOUT)
    container.config.caspio.members_table.from_value(settings.CASPIO_MEMBERS_TABLE)
    container.config.sync.page_size.from_value(settings.MEMBERS_SYNC_PAGE_SIZE)
    container.config.sync.max_pages.from_value(settings.MEMBERS_SYNC_MAX_PAGES)
    container.config.sync.ttl_seconds.from_value(settings.MEMBERS_CACHE_TTL_SECONDS)
    container.config.assignments.scan_page_size.from_value(settings.ASSIGNMENT_SCAN_PAGE_SIZE)
    container.config.assignments.scan_max_rows.from_value(settings.ASSIGNMENT_SCAN_MAX_ROWS)
    container.config.assignments.max_candidate_tokens.from_value(settings.ASSIGNMENT_MAX_CANDIDATE_TOKENS)
    container.config.assignments.auth_expiry_plans.from_value(list(settings.AUTH_EXPIRY_PLANS))
    Container.init(container)
    return container
