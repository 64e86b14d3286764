from orders.services import order_timeline


def _completed(status):
    return [step["status"] for step in order_timeline(status) if step["completed"]]


def test_pending_order_has_only_placed_step_completed():
    timeline = order_timeline("pending")
    assert [s["name"] for s in timeline] == [
        "Order Placed",
        "Order Confirmed",
        "Preparing",
        "Out for Delivery",
        "Delivered",
    ]
    assert _completed("pending") == ["pending"]


def test_progress_marks_every_earlier_step():
    assert _completed("out-for-delivery") == ["pending", "confirmed", "preparing", "out-for-delivery"]


def test_cancelled_and_returned_orders_get_a_closing_step():
    assert _completed("cancelled") == ["pending", "cancelled"]
    returned = order_timeline("returned")
    assert returned[-1]["status"] == "returned"
    assert all(step["completed"] for step in returned)
