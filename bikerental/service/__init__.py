"""
.. autoclasstree:: bikerental.service

The service package holds the business logic of the server. The views
translate requests into calls on the services, and the services read and
write the models.
"""
