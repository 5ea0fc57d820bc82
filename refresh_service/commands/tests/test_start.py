from unittest import IsolatedAsyncioTestCase

from ...config.error import ArgsParseError
from ...tests import mock
from .. import start as test_module


class TestStart(IsolatedAsyncioTestCase):
    def test_bad_args(self):
        with mock.patch.object(test_module.arg.ArgumentParser, "print_help"):
            with self.assertRaises(ArgsParseError):
                test_module.execute([])

        with self.assertRaises(SystemExit):
            test_module.execute(["bad"])

    async def test_start_shutdown_app(self):
        mock_conductor = mock.MagicMock(
            setup=mock.CoroutineMock(),
            start=mock.CoroutineMock(),
            stop=mock.CoroutineMock(),
        )
        await test_module.start_app(mock_conductor)
        await test_module.shutdown_app(mock_conductor)
        mock_conductor.setup.assert_awaited_once()
        mock_conductor.start.assert_awaited_once()
        mock_conductor.stop.assert_awaited_once()

    def test_exec_start(self):
        with mock.patch.object(
            test_module, "start_app", autospec=True
        ) as start_app, mock.patch.object(
            test_module, "run_loop"
        ) as run_loop, mock.patch.object(
            test_module, "shutdown_app", autospec=True
        ) as shutdown_app, mock.patch.object(
            test_module, "common_config"
        ) as common_config:
            test_module.execute(
                [
                    "--host",
                    "0.0.0.0:8002",
                    "--supported-issuers",
                    "*=http://issuer-node:3001",
                    "--http-config-path",
                    "providers.yaml",
                ]
            )
            start_app.assert_called_once()
            conductor = start_app.call_args[0][0]
            assert isinstance(conductor, test_module.Conductor)
            assert conductor.settings["server.host"] == "0.0.0.0"
            assert conductor.settings["server.port"] == 8002
            assert conductor.settings["issuer.urls"] == {
                "*": "http://issuer-node:3001"
            }
            assert conductor.settings["providers.config_path"] == "providers.yaml"
            common_config.assert_called_once_with(conductor.settings)
            shutdown_app.assert_called_once()
            run_loop.assert_called_once()

    async def test_run_loop(self):
        startup = mock.CoroutineMock()
        startup_call = startup()
        shutdown = mock.CoroutineMock()
        shutdown_call = shutdown()
        with mock.patch.object(test_module, "asyncio", autospec=True) as mock_asyncio:
            test_module.run_loop(startup_call, shutdown_call)
            mock_loop = mock_asyncio.new_event_loop.return_value
            mock_loop.add_signal_handler.assert_called_once()
            init_coro = mock_asyncio.ensure_future.call_args[0][0]
            mock_loop.run_forever.assert_called_once()
            await init_coro
            startup.assert_awaited_once()

            done_calls = mock_loop.add_signal_handler.call_args
            done_calls[0][1]()  # exec partial
            done_coro = mock_asyncio.ensure_future.call_args[0][0]
            tasks = [
                mock.MagicMock(),
                mock.MagicMock(cancel=mock.MagicMock()),
            ]
            mock_asyncio.gather = mock.CoroutineMock()
            mock_asyncio.all_tasks.return_value = tasks
            mock_asyncio.current_task.return_value = tasks[0]

            await done_coro
            shutdown.assert_awaited_once()
            tasks[1].cancel.assert_called_once()
            mock_asyncio.get_running_loop.return_value.stop.assert_called_once()

    async def test_run_loop_init_x(self):
        startup = mock.CoroutineMock(side_effect=KeyError("the front fell off"))
        startup_call = startup()
        shutdown = mock.CoroutineMock()
        shutdown_call = shutdown()
        with mock.patch.object(
            test_module, "asyncio", autospec=True
        ) as mock_asyncio, mock.patch.object(
            test_module, "LOGGER", autospec=True
        ) as mock_logger:
            test_module.run_loop(startup_call, shutdown_call)
            mock_loop = mock_asyncio.new_event_loop.return_value
            init_coro = mock_asyncio.ensure_future.call_args[0][0]
            await init_coro
            startup.assert_awaited_once()

            done_coro = mock_asyncio.ensure_future.call_args[0][0]
            task = mock.MagicMock()
            mock_asyncio.gather = mock.CoroutineMock()
            mock_asyncio.all_tasks.return_value = [task]
            mock_asyncio.current_task.return_value = task

            await done_coro
            shutdown.assert_awaited_once()
            mock_logger.exception.assert_called_once()
            mock_loop.run_forever.assert_called_once()

    def test_main(self):
        with mock.patch.object(
            test_module, "__name__", "__main__"
        ), mock.patch.object(
            test_module, "execute", mock.MagicMock()
        ) as mock_execute:
            test_module.main()
            mock_execute.assert_called_once()
