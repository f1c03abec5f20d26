import os

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import pandas as pd


def plot_block_log(log_file: str, save_dir: str, name: str = "qpack"):
    df = pd.read_csv(log_file)
    assert isinstance(df, pd.DataFrame)
    arrived = df[df['event'] == 'arrived']
    decoded = df[df['event'] == 'decoded']
    acked = df[df['event'] == 'acked']

    fig, axes = plt.subplots(3, 1, figsize=(12, 9))
    axes[0].set_title(name)
    axes[0].plot(arrived['timestamp_ms'] / 1e3, arrived['queued_bytes'],
                 'o-', ms=2, drawstyle='steps-post',
                 label='max {}B'.format(int(arrived['queued_bytes'].max())
                                        if len(arrived) else 0))
    axes[0].set_xlabel("Time(s)")
    axes[0].set_ylabel("Queued bytes")
    axes[0].legend(loc='right')
    axes[0].set_ylim(0, )

    hol_delays_ms = decoded['hol_delay_ms']
    axes[1].plot(decoded['timestamp_ms'] / 1e3, hol_delays_ms, 'o', ms=2,
                 label='HOL delay, avg {:.3f}ms'.format(
                     hol_delays_ms.mean() if len(decoded) else 0))
    axes[1].set_xlabel("Time(s)")
    axes[1].set_ylabel("HOL delay(ms)")
    axes[1].legend(loc='right')
    axes[1].set_ylim(0, )

    axes[2].plot(acked['timestamp_ms'] / 1e3, acked['commit_epoch'], 'o-',
                 ms=2, drawstyle='steps-post', label='commit epoch')
    axes[2].plot(acked['timestamp_ms'] / 1e3, acked['seqn'], 'x', ms=2,
                 label='acked seqn')
    axes[2].set_xlabel("Time(s)")
    axes[2].set_ylabel("Sequence number")
    axes[2].legend(loc='lower right')
    plt.tight_layout()
    if save_dir:
        os.makedirs(save_dir, exist_ok=True)
        fig.savefig(os.path.join(save_dir, "{}_block_log.jpg".format(name)),
                    bbox_inches='tight')
    plt.close()
