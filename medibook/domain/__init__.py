"""Domain packages: one per resource, each with router/service/repository/schemas"""
