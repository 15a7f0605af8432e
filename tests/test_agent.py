"""Tests for the agent data bag, rules and scheduling helpers."""

import logging

from src.entities.agent import Agent


class TestAgentData:

    def test_get_and_set(self):
        agent = Agent({"x": 1})
        agent.set("y", 2)
        agent.set({"x": 5, "z": 3})

        assert agent.get("x") == 5
        assert agent.get("missing") is None
        assert agent.get_data() == {"x": 5, "y": 2, "z": 3}

    def test_increment_and_decrement(self):
        agent = Agent()
        agent.increment("n")
        agent.increment("n", 4)
        agent.decrement("m", 2)

        assert agent.get("n") == 5
        assert agent.get("m") == -2

    def test_unique_ids(self):
        assert len({Agent().id for _ in range(10)}) == 10


class TestAgentRules:

    def test_execute_rules_in_registration_order(self):
        order = []
        agent = Agent()
        agent.add_rule(lambda a: order.append(1))
        agent.add_rule(lambda a, n: order.append(n), 2)

        agent.execute_rules()
        agent.execute_rules()

        assert order == [1, 2, 1, 2]

    def test_enqueued_rules_run_once(self):
        order = []
        agent = Agent()
        agent.enqueue(lambda a, n: order.append(n), "first")
        agent.enqueue(lambda a: order.append("second"))

        agent.execute_enqueued_rules()
        agent.execute_enqueued_rules()

        assert order == ["first", "second"]
        assert agent.queue == []

    def test_operations_enqueued_while_draining_run_in_same_pass(self):
        order = []
        agent = Agent()
        agent.enqueue(lambda a: a.enqueue(lambda b: order.append("nested")))

        agent.execute_enqueued_rules()

        assert order == ["nested"]
        assert agent.queue == []


class TestAgentScheduling:

    def test_schedule_without_environment_warns(self, caplog):
        agent = Agent()
        with caplog.at_level(logging.WARNING, logger="src.entities.agent"):
            agent.schedule_in(3)

        assert "no scheduler" in caplog.text

    def test_schedule_helpers(self, priority_env):
        agent = Agent()
        priority_env.add_agent(agent)
        scheduler = priority_env.scheduler

        agent.schedule(7)
        assert scheduler.get_scheduled_time(agent) == 7

        agent.schedule_in(2)
        assert scheduler.get_scheduled_time(agent) == 2

        agent.unschedule()
        assert not scheduler.is_scheduled(agent)

    def test_events_without_bus_warn(self, settings, caplog):
        from src.core.environment import Environment

        env = Environment(settings=settings)
        agent = Agent()
        env.add_agent(agent)

        with caplog.at_level(logging.WARNING, logger="src.entities.agent"):
            unsubscribe = agent.on("x", lambda a, e: None)
            agent.emit("x")
        unsubscribe()

        assert "without an event bus" in caplog.text
