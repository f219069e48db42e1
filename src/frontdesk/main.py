"""
Front Desk intake service - patient identity resolution and visit billing
Controller/Service/Repository pattern
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional, Dict, Any

from fastapi import FastAPI, Depends, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from redis.exceptions import RedisError

from .core.cache import CacheManager
from .core.config import ApplicationConfig, get_config
from .core.dependencies import get_service_context
from .core.logging_setup import configure_logging
from .registries import PrimaryRegistry, MirrorRegistry, create_registries

# Domain services
from .domains.billing.repositories.doctor_repository import DoctorRepository
from .domains.billing.services.charge_service import ChargeResolver, DoctorDirectory
from .domains.booking.services.intake_service import IntakeService
from .domains.booking.services.ledger_service import AppointmentLedger
from .domains.patient.services.directory_service import PatientDirectory
from .domains.patient.services.identity_service import IdentityAllocator
from .domains.patient.services.mirror_service import RegistryMirror

# Domain controllers
from .domains.patient.controllers.patient_controller import router as patient_router
from .domains.billing.controllers.billing_controller import router as billing_router
from .domains.booking.controllers.booking_controller import router as booking_router


logger = logging.getLogger(__name__)


class FrontDeskServiceContext:
    """Centralized service context for dependency injection"""

    def __init__(
        self,
        config: Optional[ApplicationConfig] = None,
        primary: Optional[PrimaryRegistry] = None,
        mirror: Optional[MirrorRegistry] = None,
        cache_manager: Optional[CacheManager] = None,
    ):
        self.config = config or get_config()
        self.primary = primary
        self.mirror = mirror
        self.cache_manager = cache_manager
        self.start_time = datetime.now(timezone.utc)
        self._initialized = False

        self.directory: Optional[PatientDirectory] = None
        self.identity: Optional[IdentityAllocator] = None
        self.registry_mirror: Optional[RegistryMirror] = None
        self.doctors: Optional[DoctorDirectory] = None
        self.charge_resolver: Optional[ChargeResolver] = None
        self.ledger: Optional[AppointmentLedger] = None
        self.intake: Optional[IntakeService] = None

    async def initialize(self) -> None:
        """Initialize registries, cache and services"""
        if self._initialized:
            return

        logger.info(f"Initializing Front Desk service context ({self.config.registry_backend} registries)...")

        if self.primary is None or self.mirror is None:
            self.primary, self.mirror = create_registries(self.config.registry_backend, self.config)
        await self.primary.initialize()
        await self.mirror.initialize()

        await self._init_cache()
        self._init_services()

        await self.doctors.refresh()
        await self.directory.refresh()
        if self.config.directory.live_updates:
            await self.directory.start_live()

        self._initialized = True
        logger.info("Front Desk service context initialized successfully")

    async def _init_cache(self) -> None:
        if self.cache_manager is not None or not self.config.redis.enabled:
            return
        cache_manager = CacheManager(self.config.redis)
        try:
            await cache_manager.initialize()
            self.cache_manager = cache_manager
        except RedisError as e:
            logger.warning(f"Redis unavailable, doctor directory will not be cached: {e}")

    def _init_services(self) -> None:
        self.directory = PatientDirectory(self.primary, self.mirror, self.config.directory)
        self.identity = IdentityAllocator(self.config.identity, registry=self.primary)
        self.registry_mirror = RegistryMirror(self.primary, self.mirror, self.config.mirror.hospital_name)
        self.doctors = DoctorDirectory(DoctorRepository(self.primary, self.cache_manager))
        self.charge_resolver = ChargeResolver(self.doctors)
        self.ledger = AppointmentLedger(self.primary)
        self.intake = IntakeService(
            self.directory,
            self.identity,
            self.registry_mirror,
            self.charge_resolver,
            self.ledger,
        )

    async def cleanup(self) -> None:
        """Cleanup all connections"""
        logger.info("Cleaning up Front Desk service context...")

        if self.directory:
            await self.directory.stop_live()
        if self.cache_manager:
            await self.cache_manager.cleanup()
        if self.primary:
            await self.primary.cleanup()
        if self.mirror:
            await self.mirror.cleanup()

        self._initialized = False
        logger.info("Cleanup complete")

    async def health(self) -> Dict[str, Any]:
        cache = await self.cache_manager.health_check() if self.cache_manager else {"status": "disabled"}
        directory = self.directory.live_status() if self.directory else {"status": "disabled"}
        return {
            "primary": await self.primary.health_check(),
            "mirror": await self.mirror.health_check(),
            "cache": cache,
            "directory": directory,
        }


def create_app(context: Optional[FrontDeskServiceContext] = None) -> FastAPI:
    """Build the FastAPI application around a service context"""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        logger.info("Starting Front Desk service...")
        app.state.frontdesk = context or FrontDeskServiceContext()
        await app.state.frontdesk.initialize()
        logger.info("Front Desk service started successfully")

        yield

        # Shutdown
        logger.info("Shutting down Front Desk service...")
        await app.state.frontdesk.cleanup()
        logger.info("Front Desk service shutdown complete")

    config = context.config if context else get_config()

    application = FastAPI(
        title=config.app_name,
        version=config.app_version,
        description="Hospital front-desk intake: cross-registry patient identity and visit billing",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc"
    )

    # Add CORS middleware
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include domain routers
    application.include_router(patient_router)
    application.include_router(billing_router)
    application.include_router(booking_router)

    @application.get("/health")
    async def health_check(service: FrontDeskServiceContext = Depends(get_service_context)):
        """Health of both registries, the cache and the live directory"""
        components = await service.health()
        healthy = all(c.get("status") == "healthy" for c in (components["primary"], components["mirror"]))
        healthy = healthy and components["directory"]["status"] != "degraded"
        return {
            "status": "healthy" if healthy else "degraded",
            "version": service.config.app_version,
            "registryBackend": service.config.registry_backend,
            "components": components,
            "timestamp": datetime.now(timezone.utc),
        }

    @application.get("/metrics")
    async def metrics():
        """Prometheus metrics endpoint"""
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @application.get("/")
    async def root():
        """Root endpoint with service information"""
        return {
            "service": config.app_name,
            "version": config.app_version,
            "architecture": "Domain-Driven Design",
            "pattern": "Controller/Service/Repository",
            "documentation": "/docs",
            "health": "/health",
            "metrics": "/metrics"
        }

    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    configure_logging()
    settings = get_config()
    uvicorn.run(
        "frontdesk.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.logging.level.lower(),
        access_log=settings.debug,
        reload=False
    )
