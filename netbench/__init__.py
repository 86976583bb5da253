"""
Netbench: a two-role network benchmark harness deployed on Amazon ECS.
"""
