from unittest.mock import patch

from smartqueue import scheduler as scheduler_module


def test_init_scheduler_registers_expansion_job():
    with patch.object(scheduler_module, "scheduler", None), patch(
        "smartqueue.scheduler.BackgroundScheduler"
    ) as scheduler_cls:
        instance = scheduler_cls.return_value

        result = scheduler_module.init_scheduler()

        assert result is instance
        job = instance.add_job.call_args.kwargs
        assert job["id"] == "expand_pending_search_ranges"
        assert job["func"] is scheduler_module.expand_pending_search_ranges
        assert instance.add_listener.call_count == 2
        instance.start.assert_called_once()

        # A second call reuses the running scheduler.
        assert scheduler_module.init_scheduler() is instance
        scheduler_cls.assert_called_once()

        scheduler_module.shutdown_scheduler()
        instance.shutdown.assert_called_once_with(wait=True)
        assert scheduler_module.get_scheduler() is None
