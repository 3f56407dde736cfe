# playkit

Building blocks for the output stage of an audio player, in pure Python
with no third-party dependencies.

## Modules

- `playkit.config`: player settings and volume control.
  - `Bitrate`, `AudioFormat`, `NormalisationType` and `NormalisationMethod`
    enums, each with a `from_str` class method that raises `ValueError` on
    an unknown name. `AudioFormat.size()` gives the bytes per sample
    (S24 and S32 both take four).
  - `PlayerConfig`, a dataclass of player settings; `normalisation_attack`
    and `normalisation_release` are durations in seconds. Its `ditherer`
    defaults to `TriangularDitherer`.
  - `VolumeCtrl`, a volume curve of kind `VolumeCtrlKind` (cubic, fixed,
    linear, log) with a dB range for the cubic and log kinds. Build one with
    `VolumeCtrl.cubic`, `fixed`, `linear`, `log`, `from_str` or
    `from_str_with_range`. `to_mapped` turns a volume in
    `0..=VolumeCtrl.MAX_VOLUME` (65535) into an amplitude ratio;
    `to_unmapped` goes back.
  - Constants `SAMPLE_RATE` (44100), `NUM_CHANNELS` (2),
    `SAMPLES_PER_SECOND`, `PAGES_PER_MS` and `MS_PER_PAGE`.
- `playkit.mappings`: the `LogMapping` and `CubicMapping` curves, each with
  `linear_to_mapped` and `mapped_to_linear`.
- `playkit.dither`: `TriangularDitherer` (`tpdf`), `GaussianDitherer`
  (`gpdf`) and `HighPassDitherer` (`tpdf_hp`). Each takes an optional
  `random.Random`. `find_ditherer(name)` returns the class for a name, or
  `None`.
- `playkit.convert`: `Converter` turns float samples in `-1.0..=1.0` into
  F32, S32, S24 (in a 32-bit word), S24_3 (three native-order bytes each)
  or S16, rounding to nearest and saturating, with dither noise when given
  a ditherer class or other builder.
- `playkit.mixer`: `SoftMixer` keeps the volume in software; set and read
  it through its `volume` property, and let the player scale samples by
  `get_soft_volume().attenuation_factor()`. `MixerConfig` holds the
  settings it is opened with. `find_mixer(name)` looks mixers up
  (`softvol`; `None` gives the default).
- `playkit.decoder`: `SamplesPacket` and `OggDataPacket`, the
  `AudioDecoder` interface (`seek`, `next_packet`, and iteration over
  packets), `samples_from_f32`, and the `DecoderError` and
  `AudioPacketError` exceptions.
- `playkit.ogg`: `PacketReader` reads packets from a seekable stream of Ogg
  pages, checking page checksums; `PacketWriter` packs packets into pages
  that `take()` hands back. Errors are raised as `OggReadError`.
- `playkit.passthrough`: `PassthroughDecoder` reads an Ogg Vorbis stream
  and repackages its pages, headers first, into a new stream with its own
  serial number, returned as `OggDataPacket`s, without decoding the audio.
- `playkit.sink`: output sinks, usable as context managers that call
  `start` and `stop`.
  - `StdoutSink` (`pipe`) writes raw samples to standard output, or to the
    file named as its device, which is created if missing but not
    truncated.
  - `SubprocessSink` (`subprocess`) splits its device string like a shell
    and feeds the samples to the command's standard input; `stop` kills the
    command.
  - A device of `"?"` prints usage and exits. Failures are raised as
    `SinkNotConnected`, `SinkConnectionRefused`, `SinkWriteError` or
    `SinkInvalidParams`, all subclasses of `SinkError`.
  - `find_backend(name)` looks sinks up (`None` gives `pipe`).

## Install

```
pip install .
```

## Example

```python
from playkit.config import AudioFormat, VolumeCtrl
from playkit.convert import Converter
from playkit.decoder import SamplesPacket
from playkit.dither import find_ditherer
from playkit.mixer import MixerConfig, SoftMixer
from playkit.sink import find_backend

ctrl = VolumeCtrl.from_str("log")
print(ctrl.to_mapped(32768))

mixer = SoftMixer(MixerConfig(volume_ctrl=ctrl))
mixer.volume = 32768
factor = mixer.get_soft_volume().attenuation_factor()

converter = Converter(find_ditherer("tpdf"))
print(converter.f64_to_s16([0.0, 0.5, -1.0]))

sink_class = find_backend("pipe")
with sink_class("out.raw", AudioFormat.S16) as sink:
    sink.write(SamplesPacket([s * factor for s in (0.0, 0.25, -0.25, 0.0)]), converter)
```

The `subprocess` sink takes a shell command as its device, for example
`"aplay -f cd"`.

## What it does not do

- It does not decode Vorbis or any other compressed audio into samples;
  the only decoder is `PassthroughDecoder`, which forwards Ogg pages.
- There is no player that ties decoders, mixer and sinks together, and no
  command-line program.
- The only outputs are the `pipe` and `subprocess` sinks; there is no
  direct access to sound hardware or audio servers, and the only mixer is
  the software one.

## Tests

```
pip install .[test]
pytest
```