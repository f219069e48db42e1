"""
Prometheus metrics for the intake service
"""

from prometheus_client import Counter, Histogram

booking_count = Counter('frontdesk_bookings_total', 'Total booking submissions', ['ledger', 'status'])
booking_duration = Histogram('frontdesk_booking_duration_seconds', 'Booking submission duration', ['ledger'])
partial_writes = Counter('frontdesk_partial_writes_total', 'New identities that reached only the primary registry')
doctor_cache_hits = Counter('frontdesk_doctor_cache_hits_total', 'Doctor directory cache hits')
doctor_cache_misses = Counter('frontdesk_doctor_cache_misses_total', 'Doctor directory cache misses')
