#!/usr/bin/env python
""" Task Monitor Class """
import textwrap
import time
import sys
from vcops import Logger

class Tasks(Logger):
    """ Manage VMware Tasks """
    def __init__(self):
        pass

    @classmethod
    def question_and_answer(cls, host, **answered):
        """
        Method handles the questions and answers provided by the program.

        Args:
            host (obj): VirtualMachine object
            answered (dict): A key value pair of already answered questions.
        """

        question = host.runtime.question

        if not question or question.id in answered:
            return None

        choices = {}
        for option in question.choice.choiceInfo:
            choices.update({option.key : option.label})

        answer = None

        # systemd does not provide a mechanism for disabling cdrom lock
        if 'CD-ROM door' in question.text:
            for key, val in choices.items():
                if 'Yes' in val:
                    answer = key
        else:
            print('\n')
            print('\n'.join(textwrap.wrap(question.text, 80)))
            for key, val in sorted(choices.items()):
                print('\t%s: %s' % (key, val))

            warn = textwrap.dedent("""\
                Warning: The VM may be in a suspended
                state until this question is answered.""").strip()

            print(textwrap.fill(warn, width=80))

            while True:
                answer = input('\nPlease select number: ').strip()
                if answer in choices:
                    break

        if answer is not None:
            cls.logger.info('%s question %s answer %s', host.name, question.id, answer)
            host.AnswerVM(question.id, str(answer))
            answered.update({question.id : answer})
            return answered

        return None

    @classmethod
    def task_monitor(cls, task, question=True, host=None, interval=5):
        """
        Method monitors the state of called task and outputs the current status.
        Some tasks require that questions be answered before completion, and are
        optional arguments in the case that some tasks don't require them. It
        will continually check for questions while in progress. The VM object is
        required if the question argument is True.

        Args:
            task (obj):      Task object
            question (bool): Enable or Disable Question
            host (obj):      VirtualMachine object
            interval (int):  Seconds to sleep between polls
        Returns:
            boolean (bool):  True if successful or False if error
        """
        # keep track of answered questions
        answered = {}

        while task.info.state in ('queued', 'running'):
            if question and host:
                result = cls.question_and_answer(host, **answered)
                if result:
                    answered.update(result)
            if isinstance(task.info.progress, int):
                sys.stdout.write(
                    '\r[' + task.info.state + '] | ' + str(task.info.progress)
                )
                sys.stdout.flush()
            time.sleep(interval)

        if task.info.state == 'error':
            # collect all the error messages we can find
            errors = []
            errors.append(task.info.error.msg)

            for items in task.info.error.faultMessage:
                errors.append(items.message)

            sys.stdout.write('\r[' + task.info.state + '] | ' + ' '.join(errors) + '\n')
            cls.logger.error('[%s] | %s', task.info.state, ' '.join(errors))
            sys.stdout.flush()
            return False

        sys.stdout.write('\r[' + task.info.state + '] | task successfully completed.\n')
        cls.logger.info('[%s] task successfully completed.', task.info.state)
        sys.stdout.flush()
        return True

    @classmethod
    def wait_for_power_state(cls, host, state, timeout=300, interval=5):
        """
        Method polls a VM until it reaches the requested power state.

        Args:
            host (obj):     VirtualMachine object
            state (str):    poweredOn, poweredOff or suspended
            timeout (int):  Seconds to wait before giving up
            interval (int): Seconds to sleep between polls
        Returns:
            boolean (bool): True once the state is reached
        """
        waited = 0

        while host.runtime.powerState != state:
            if waited >= timeout:
                raise ValueError(
                    '%s did not reach %s within %s seconds' % (host.name, state, timeout)
                )
            time.sleep(interval)
            waited += interval

        cls.logger.info('%s %s after %s seconds', host.name, state, waited)
        return True
