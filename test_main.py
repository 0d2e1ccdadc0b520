# test_main.py v1.0
# Integration tests for the command line orchestrator: exit codes and the
# rule that ffmpeg only runs after every frame was rendered.

import os
import shlex
import subprocess
import tempfile
import unittest
from unittest import mock
from termcolor import cprint

import main
from bounds import Bounds
from jobs import generate_jobs
from errors import JobError
from renderer_worker import RenderSettings, JobOutcome
from test_renderer_worker import FAKE_GNUPLOT


class TestMain(unittest.TestCase):
    """End-to-end runs over a small run directory."""

    def setUp(self):
        cprint(f"\n--- Running test: {self._testMethodName} ---", 'yellow')
        self._tmp = tempfile.TemporaryDirectory()
        self.run_dir = self._tmp.name
        self._write('_sample.txt', "2\n")
        self._write('_time.txt', "0.5\n")
        self._write('_bounds.dat', "# min\n-1 -1\n# max\n1 1\n")
        self.fake_gnuplot = ' '.join(shlex.quote(part) for part in FAKE_GNUPLOT)

    def tearDown(self):
        self._tmp.cleanup()

    def _write(self, name, text):
        with open(os.path.join(self.run_dir, name), 'w') as f:
            f.write(text)

    @mock.patch('compile_video.subprocess.run')
    def test_01_successful_run(self, run):
        cprint("  -> Running the full pipeline with a fake plotter...", 'cyan')
        run.return_value = subprocess.CompletedProcess(args=[], returncode=0)

        status = main.main([self.run_dir, '-w', '2', '-f', '25', '--gnuplot', self.fake_gnuplot])
        self.assertEqual(status, main.EXIT_SUCCESS)
        for i in range(3):
            self.assertTrue(os.path.exists(os.path.join(self.run_dir, f"{i}.png")))

        run.assert_called_once()
        command = run.call_args[0][0]
        self.assertEqual(command[command.index('-r') + 1], '25')
        self.assertEqual(command[command.index('-i') + 1], os.path.join(self.run_dir, '%d.png'))
        cprint("Test Passed: frames rendered and encoded once.", 'green')

    @mock.patch('compile_video.subprocess.run')
    def test_02_spawn_failure_skips_encoder(self, run):
        cprint("  -> Running with a plotter that cannot be spawned...", 'cyan')
        missing = os.path.join(self.run_dir, 'no-such-gnuplot')
        status = main.main([self.run_dir, '-w', '1', '--gnuplot', missing])
        self.assertEqual(status, main.EXIT_FAILURE)
        run.assert_not_called()
        cprint("Test Passed: encoder never invoked.", 'green')

    def test_03_not_a_directory(self):
        path = os.path.join(self.run_dir, '_sample.txt')
        self.assertEqual(main.main([path]), main.EXIT_FAILURE)

    def test_04_configuration_errors(self):
        cprint("  -> Testing configuration errors...", 'cyan')
        self._write('_bounds.dat', "0 0\n1 1 1\n")
        self.assertEqual(main.main([self.run_dir]), main.EXIT_FAILURE)

        self._write('_bounds.dat', "0\n1\n")
        self.assertEqual(main.main([self.run_dir]), main.EXIT_FAILURE)

        os.remove(os.path.join(self.run_dir, '_time.txt'))
        self.assertEqual(main.main([self.run_dir]), main.EXIT_FAILURE)

        with self.assertRaises(SystemExit):
            main.main([self.run_dir, '--worker', 'many'])
        with self.assertRaises(SystemExit):
            main.main([self.run_dir, '--frame-rate', '0'])
        cprint("Test Passed: bad configuration aborts before dispatch.", 'green')

    @mock.patch('compile_video.subprocess.run')
    def test_05_override_bounds(self, run):
        run.return_value = subprocess.CompletedProcess(args=[], returncode=0)
        os.remove(os.path.join(self.run_dir, '_bounds.dat'))
        status = main.main([self.run_dir, '--min-bounds', '0 0 0', '--max-bounds', '5 5 5',
                            '--gnuplot', self.fake_gnuplot])
        self.assertEqual(status, main.EXIT_SUCCESS)
        with open(os.path.join(self.run_dir, '0.png')) as f:
            self.assertIn("splot [0.0:5.0] [0.0:5.0] [0.0:5.0]", f.read())

    @mock.patch('compile_video.subprocess.run')
    def test_06_encoder_failure(self, run):
        run.return_value = subprocess.CompletedProcess(args=[], returncode=1)
        status = main.main([self.run_dir, '--gnuplot', self.fake_gnuplot])
        self.assertEqual(status, main.EXIT_FAILURE)

    def test_07_undecodable_files(self):
        cprint("  -> Testing metadata and bounds that are not UTF-8 text...", 'cyan')
        with open(os.path.join(self.run_dir, '_sample.txt'), 'wb') as f:
            f.write(b"\xff\xfe2\n")
        self.assertEqual(main.main([self.run_dir]), main.EXIT_FAILURE)

        self._write('_sample.txt', "2\n")
        with open(os.path.join(self.run_dir, '_bounds.dat'), 'wb') as f:
            f.write(b"-1 -1\n\xff 1\n")
        self.assertEqual(main.main([self.run_dir]), main.EXIT_FAILURE)
        cprint("Test Passed: undecodable input handled.", 'green')

    @mock.patch('compile_video.subprocess.run')
    def test_08_fractional_frame_rates(self, run):
        cprint("  -> Testing frame rates ffmpeg accepts as text...", 'cyan')
        run.return_value = subprocess.CompletedProcess(args=[], returncode=0)
        for rate in ('29.97', '30000/1001'):
            status = main.main([self.run_dir, '-f', rate, '--gnuplot', self.fake_gnuplot])
            self.assertEqual(status, main.EXIT_SUCCESS)
            command = run.call_args[0][0]
            self.assertEqual(command[command.index('-r') + 1], rate)

        for bad in ('fast', '0', '-30', '1/0'):
            with self.assertRaises(SystemExit):
                main.main([self.run_dir, '--frame-rate', bad])
        cprint("Test Passed: frame rate passed through unchanged.", 'green')

    @mock.patch('main.render_frames', side_effect=RuntimeError("drained 2 outcomes, expected 3"))
    def test_09_consistency_defect_is_not_handled(self, render_frames):
        with self.assertRaises(RuntimeError):
            main.main([self.run_dir])


class TestRunPipeline(unittest.TestCase):

    def setUp(self):
        cprint(f"\n--- Running test: {self._testMethodName} ---", 'yellow')
        self.settings = RenderSettings('/run', Bounds([-1, -1], [1, 1]))

    @mock.patch('main.compile_video', return_value=0)
    def test_01_failure_gates_encoder(self, compile_video):
        cprint("  -> Job 1 fails: encoder must not run...", 'cyan')

        def render(args_tuple):
            job = args_tuple[0]
            if job.index == 1:
                return JobOutcome(1, error=JobError(1, "failed to spawn gnuplot"))
            return JobOutcome(job.index, exit_code=0)

        with self.assertRaises(JobError) as ctx:
            main.run_pipeline(generate_jobs(2, 0.5), self.settings, workers=3, render=render)
        self.assertEqual(ctx.exception.index, 1)
        compile_video.assert_not_called()
        cprint("Test Passed: failure propagated instead of encoding.", 'green')

    @mock.patch('main.compile_video', return_value=0)
    def test_02_success_encodes_once(self, compile_video):
        def render(args_tuple):
            return JobOutcome(args_tuple[0].index, exit_code=0)

        main.run_pipeline(generate_jobs(2, 0.5), self.settings, workers=1, frame_rate=30, render=render)
        compile_video.assert_called_once_with('/run', None, 30, 'ffmpeg')


if __name__ == '__main__':
    unittest.main()
