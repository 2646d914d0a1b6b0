# Business Services
from travelhub.services.availability_ledger import AvailabilityLedger
from travelhub.services.catalog_service import CatalogGraph
from travelhub.services.dashboard_service import DashboardService
from travelhub.services.reservation_service import ReservationLifecycle

__all__ = [
    'AvailabilityLedger', 'CatalogGraph', 'DashboardService', 'ReservationLifecycle'
]
