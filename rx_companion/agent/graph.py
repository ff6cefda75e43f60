# rx_companion/agent/graph.py
from langgraph.graph import START, END, StateGraph
from langgraph.checkpoint.base import BaseCheckpointSaver
from langgraph.checkpoint.sqlite import SqliteSaver

from rx_companion.agent.state import RxState
from rx_companion.agent.nodes import parse_node, review_node, schedule_node, notify_node, route_after_parse
from rx_companion.db.db_config import get_sqlite_connection


def build_graph(checkpointer: BaseCheckpointSaver):
    builder = StateGraph(RxState)

    builder.add_node("parse", parse_node)
    builder.add_node("review", review_node)
    builder.add_node("schedule", schedule_node)
    builder.add_node("notify", notify_node)

    builder.add_edge(START, "parse")

    builder.add_conditional_edges("parse", route_after_parse, {
        "review": "review",
        "nothing_found": END,
    })

    builder.add_edge("review", "schedule")
    builder.add_edge("schedule", "notify")
    builder.add_edge("notify", END)

    return builder.compile(checkpointer=checkpointer)


rx_graph = build_graph(SqliteSaver(get_sqlite_connection()))


def session_config(session_id: str):
    return {"configurable": {"thread_id": session_id}}
