# API Routers
from travelhub.routers import auth, browse, catalog, dashboard, hotels, reservations, trip_reservations

__all__ = ['auth', 'browse', 'catalog', 'dashboard', 'hotels', 'reservations', 'trip_reservations']
