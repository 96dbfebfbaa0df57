import tempfile
from pathlib import Path
from unittest import TestCase, mock

import numpy as np

import app
import config
from grayscott import SimulationState, Status


class TestApp(TestCase):

    def test_args_override_config(self):
        cfg = {"world": {"width": 256, "height": 256}, "seed": -1, "backend": "numpy", "steps_per_frame": 4}
        args = app.parse_args(["--width", "64", "--seed", "5", "--backend", "tiled", "--steps-per-frame", "2"])
        out = app.apply_args(cfg, args)
        self.assertEqual({"width": 64, "height": 256}, out["world"])
        self.assertEqual(5, out["seed"])
        self.assertEqual("tiled", out["backend"])
        self.assertEqual(2, out["steps_per_frame"])
        self.assertEqual(256, cfg["world"]["width"])

    def test_make_state_locks_seed(self):
        cfg = {"seed": -1, "lock_seed": True, "actual_seed_used": 77, "backend": "numpy", "feed": 0.02}
        state = app.make_state(cfg)
        self.assertEqual(77, state.seed)
        self.assertIs(Status.UNINITIALIZED, state.status)
        state.initialize(16, 16)
        self.assertEqual(0.02, state.params.feed)
        self.assertEqual(77, state.seed_used)
        self.assertEqual(-1, app.make_state({**cfg, "lock_seed": False}).seed)

    def test_restart_keeps_random_seed_when_locked(self):
        cfg = {"seed": -1, "lock_seed": True, "backend": "numpy"}
        state = app.make_state(cfg)
        first, again = np.zeros(256), np.zeros(256)
        state.step(16, 16, first)
        seed = state.seed_used
        app.restart(state, cfg)
        self.assertIs(Status.UNINITIALIZED, state.status)
        state.step(16, 16, again)
        self.assertEqual(seed, state.seed_used)
        np.testing.assert_array_equal(first, again)

    def test_restart_without_lock_uses_configured_seed(self):
        cfg = {"seed": -1, "lock_seed": False, "backend": "numpy"}
        state = app.make_state(cfg)
        state.step(16, 16, np.zeros(256))
        app.restart(state, cfg)
        self.assertEqual(-1, state.seed)
        state = app.make_state({"seed": 12})
        state.step(16, 16, np.zeros(256))
        app.restart(state, {"seed": 12})
        state.step(16, 16, np.zeros(256))
        self.assertEqual(12, state.seed_used)


class TestSavedRuns(TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name) / "configs"
        self._patches = [
            mock.patch.object(config, "CONFIG_DIR", self.root),
            mock.patch.object(config, "LAST_FILE", self.root / "last.txt"),
            mock.patch.object(config, "_CONFIG_INDEX", set()),
        ]
        for p in self._patches:
            p.start()

    def tearDown(self):
        for p in reversed(self._patches):
            p.stop()
        self._tmp.cleanup()

    def _stepped(self, seed, steps=3):
        state = SimulationState(seed=seed)
        for _ in range(steps):
            state.step(16, 16, np.zeros(256))
        return state

    def test_run_name(self):
        self.assertEqual("unnamed", app.run_name(app.parse_args([])))
        self.assertEqual("spots", app.run_name(app.parse_args(["--config", "configs/42_spots.json"])))
        self.assertEqual("mine", app.run_name(app.parse_args(["--config", "mine.json"])))
        config.save_config({}, 5, "last one")
        self.assertEqual("last_one", app.run_name(app.parse_args([])))

    def test_save_and_delete_run(self):
        state = self._stepped(9)
        cfg = config.load_config()
        with self.assertLogs("grayscott.app", "INFO") as logs:
            path = app.save_run(state, cfg, "spots", 16, 16)
            app.save_run(state, cfg, "spots", 16, 16)
        self.assertIn("Saved", logs.output[0])
        self.assertIn("Overwrote", logs.output[1])
        self.assertEqual(self.root / "9_spots.json", path)
        self.assertEqual([(9, "spots")], config.list_configs())
        self.assertEqual({"width": 16, "height": 16}, config.load_config(path)["world"])
        self.assertTrue(app.delete_run(state, "spots"))
        self.assertFalse(path.exists())
        self.assertEqual([], config.list_configs())
        self.assertFalse(app.delete_run(state, "spots"))

    def test_restore_from_given_config(self):
        saved = self._stepped(9)
        path = app.save_run(saved, config.load_config(), "spots", 16, 16)
        app.save_run(self._stepped(4, steps=1), config.load_config(), "other", 16, 16)
        args = app.parse_args(["--config", str(path)])
        cfg = app.apply_args(config.load_config(args.config), args)
        state = app.make_state(cfg)
        self.assertTrue(app.restore_saved(state, args, 16, 16))
        self.assertEqual(3, state.step_count)
        self.assertEqual(9, state.seed_used)
        np.testing.assert_array_equal(saved.u, state.u)

    def test_restore_from_last_run(self):
        saved = self._stepped(9, steps=2)
        app.save_run(saved, config.load_config(), "spots", 16, 16)
        args = app.parse_args([])
        state = app.make_state(config.load_config())
        self.assertTrue(app.restore_saved(state, args, 16, 16))
        self.assertEqual(2, state.step_count)
        with self.assertLogs("grayscott.app", "WARNING"):
            self.assertFalse(app.restore_saved(app.make_state({}), args, 32, 16))
        self.assertFalse(app.restore_saved(app.make_state({}), app.parse_args(["--config", "none.json"]), 16, 16))
