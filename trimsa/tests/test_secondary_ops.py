#!/usr/bin/env python3

import os
import shutil
import unittest

from trimsa.tests.data_files import *
from trimsa.process.sequence import Alignment
from trimsa.process import batch
from trimsa.process.error_handling import *

temp_dir = ".trimsa-test-secondary"


class SecondaryOpsTest(unittest.TestCase):

    def setUp(self):

        os.makedirs(temp_dir)
        self.aln = Alignment(concat_dna_fas[2])
        self.output_dir = os.path.join(temp_dir, "output")

    def tearDown(self):

        shutil.rmtree(temp_dir)

    def test_sort_taxa(self):

        aln = Alignment(concat_dna_fas[2]).rename_taxa({"spa": "spz"})

        self.assertEqual(list(aln.sort_taxa().matrix), ["spb", "spe", "spz"])

    def test_rename_taxa(self):

        aln = self.aln.rename_taxa({"spa": "taxonA"})

        self.assertEqual(list(aln.matrix), ["taxonA", "spb", "spe"])
        self.assertEqual(list(self.aln.matrix), ["spa", "spb", "spe"])

    def test_rename_collision(self):

        with self.assertRaises(DuplicateTaxa) as cm:
            self.aln.rename_taxa({"spa": "spb"})

        self.assertIn("spb", str(cm.exception))

    def test_remove_string(self):

        aln = self.aln.replace_in_taxa("sp")

        self.assertEqual(list(aln.matrix), ["a", "b", "e"])

    def test_replace_regex(self):

        aln = self.aln.replace_in_taxa(r"^sp([ab])$", r"taxon_\1",
                                       regex=True)

        self.assertEqual(list(aln.matrix), ["taxon_a", "taxon_b", "spe"])

    def test_remove_taxa(self):

        aln = self.aln.remove_taxa(["spa", "spe"])

        self.assertEqual(list(aln.matrix), ["spb"])
        self.assertEqual(aln.header.ntax, 1)

    def test_extract_taxa(self):

        aln = self.aln.remove_taxa(["spa", "spe"], mode="inverse")

        self.assertEqual(list(aln.matrix), ["spa", "spe"])

    def test_remove_taxa_regex(self):

        aln = self.aln.remove_taxa(regex="[ae]$")

        self.assertEqual(list(aln.matrix), ["spb"])

    def test_unalign(self):

        aln = Alignment(gappy_fas[0]).unalign()

        self.assertEqual(list(aln.matrix.values()),
                         ["ACGTACGTAC", "ACGT", "ACGTAC", ""])
        self.assertFalse(aln.header.aligned)

    def test_remove_gappy_sequences(self):

        aln = Alignment(gappy_fas[0]).remove_gappy_sequences(0.5)

        self.assertEqual(list(aln.matrix), ["spa", "spc"])
        self.assertEqual(aln.header.ntax, 2)

    def test_remove_gappy_sequences_floor(self):

        # 10 * 0.45 allows at most 4 gaps
        aln = Alignment(gappy_fas[0]).remove_gappy_sequences(0.45)

        self.assertEqual(list(aln.matrix), ["spa", "spc"])

        aln = Alignment(gappy_fas[0]).remove_gappy_sequences(0.39)

        self.assertEqual(list(aln.matrix), ["spa"])

    def test_filter_sequence_length(self):

        aln = Alignment(gappy_fas[0])

        self.assertEqual(list(aln.filter_sequence_length(min_len=6).matrix),
                         ["spa", "spc"])
        self.assertEqual(list(aln.filter_sequence_length(max_len=4).matrix),
                         ["spb", "spd"])
        self.assertEqual(list(aln.filter_sequence_length(
            min_len=4, max_len=6).matrix), ["spb", "spc"])

    def test_read_rename_csv(self):

        self.assertEqual(batch.read_rename_mapping(rename_csv[0]),
                         {"spa": "taxonA", "spb": "taxonB"})

    def test_read_rename_tsv(self):

        self.assertEqual(batch.read_rename_mapping(rename_tsv[0]),
                         {"spa": "taxonA", "spb": "taxonB"})

    def test_read_rename_bad_columns(self):

        self.assertRaises(InputError,
                          lambda: batch.read_rename_mapping(
                              bad_rename_csv[0]))

    def test_read_rename_bad_extension(self):

        self.assertRaises(InputError,
                          lambda: batch.read_rename_mapping(
                              taxa_list_file[0]))

    def test_read_id_list(self):

        self.assertEqual(batch.read_id_list(taxa_list_file[0]),
                         ["spa", "spb"])

    def test_rename_alignments(self):

        mapping = batch.read_rename_mapping(rename_csv[0])
        outputs = batch.rename_alignments(concat_dna_fas, self.output_dir,
                                          mapping=mapping,
                                          output_format="fasta")

        self.assertEqual([os.path.basename(x) for x in outputs],
                         ["gene1.fas", "gene2.fas", "gene10.fas"])
        self.assertEqual(list(Alignment(outputs[2]).matrix),
                         ["taxonA", "taxonB", "spe"])

    def test_remove_taxa_alignments(self):

        outputs = batch.remove_taxa_alignments(
            concat_dna_fas, self.output_dir, taxa_list=["spa"],
            output_format="phylip")

        for path in outputs:
            self.assertNotIn("spa", Alignment(path).matrix)

    def test_extract_taxa_alignments(self):

        outputs = batch.extract_taxa_alignments(
            concat_dna_fas, self.output_dir, taxa_list=["spa", "spe"])

        self.assertEqual(list(Alignment(outputs[2]).matrix), ["spa", "spe"])
        self.assertEqual(list(Alignment(outputs[0]).matrix), ["spa"])

    def test_convert_alignments(self):

        outputs = batch.convert_alignments(
            concat_dna_fas, self.output_dir, output_format="phylip-int",
            threads=2)

        self.assertEqual([os.path.basename(x) for x in outputs],
                         ["gene1.phy", "gene2.phy", "gene10.phy"])
        self.assertEqual(Alignment(outputs[0]).matrix,
                         Alignment(concat_dna_fas[0]).matrix)

    def test_convert_unaligned_to_nexus(self):

        self.assertRaises(AlignmentUnequalLength,
                          lambda: batch.convert_alignments(
                              unaligned_fas, self.output_dir))

    def test_convert_unaligned_to_fasta(self):

        outputs = batch.convert_alignments(unaligned_fas, self.output_dir,
                                           output_format="fasta")

        self.assertEqual(Alignment(outputs[0]).matrix,
                         Alignment(unaligned_fas[0]).matrix)

    def test_unalign_alignments(self):

        outputs = batch.unalign_alignments(gappy_fas, self.output_dir)

        self.assertEqual([os.path.basename(x) for x in outputs],
                         ["locus1.fas", "locus2.fas"])
        self.assertEqual(Alignment(outputs[1]).matrix["spa"], "AC")

    def test_unalign_alignments_nexus(self):

        self.assertRaises(InputError,
                          lambda: batch.unalign_alignments(
                              gappy_fas, self.output_dir,
                              output_format="nexus"))

    def test_filter_sequences(self):

        outputs = batch.filter_sequences(gappy_fas, self.output_dir,
                                         max_gap=0.5)

        self.assertEqual(outputs, [os.path.join(self.output_dir,
                                                "locus1.nex")])
        self.assertEqual(os.listdir(self.output_dir), ["locus1.nex"])
        self.assertEqual(list(Alignment(outputs[0]).matrix), ["spa", "spc"])

    def test_filter_sequences_length(self):

        outputs = batch.filter_sequences(gappy_fas, self.output_dir,
                                         min_len=2, output_format="fasta")

        self.assertEqual(len(outputs), 2)
        self.assertEqual(list(Alignment(outputs[1]).matrix), ["spa"])

    def test_filter_sequences_nothing_left(self):

        outputs = batch.filter_sequences(gappy_fas, self.output_dir,
                                         min_len=20)

        self.assertEqual(outputs, [])

    def test_filter_sequences_no_criterion(self):

        self.assertRaises(TriMSAError,
                          lambda: batch.filter_sequences(gappy_fas,
                                                         self.output_dir))

    def test_write_unique_ids(self):

        output_file = os.path.join(temp_dir, "ids.txt")
        n = batch.write_unique_ids(concat_dna_fas, output_file)

        self.assertEqual(n, 5)
        with open(output_file) as fh:
            self.assertEqual(fh.read(), "spa\nspb\nspc\nspd\nspe\n")

    def test_concat_alignments(self):

        output = os.path.join(temp_dir, "concat")
        aln_file, part_file = batch.concat_alignments(
            concat_dna_fas, output, output_format="phylip",
            partition_format="raxml")

        self.assertEqual(aln_file, output + ".phy")
        self.assertEqual(part_file,
                         os.path.join(temp_dir, "concat_partition.txt"))

        aln = Alignment(aln_file)
        self.assertEqual(aln.matrix["spd"], "ACGAACGTAA" + "?" * 14)
        self.assertEqual(aln.matrix["spe"], "?" * 16 + "AAAACCCC")

    def test_concat_sorted(self):

        output = os.path.join(temp_dir, "concat.nex")
        batch.concat_alignments(list(reversed(concat_dna_fas)), output,
                                sort=True)

        self.assertEqual(list(Alignment(output).matrix),
                         ["spa", "spb", "spc", "spd", "spe"])

    def test_concat_output_exists(self):

        output = os.path.join(temp_dir, "concat.nex")
        open(output, "w").close()

        self.assertRaises(OutputCollision,
                          lambda: batch.concat_alignments(concat_dna_fas,
                                                          output))

    def test_split_alignment(self):

        concatenated = os.path.join(temp_dir, "concat.nex")
        batch.concat_alignments(concat_dna_fas, concatenated)

        outputs = batch.split_alignment(concatenated, concat_par_raxml[0],
                                        self.output_dir,
                                        output_format="fasta")

        self.assertEqual([os.path.basename(x) for x in outputs],
                         ["gene1.fas", "gene2.fas", "gene10.fas"])
        for path, original in zip(outputs, concat_dna_fas):
            self.assertEqual(Alignment(path).matrix,
                             Alignment(original).matrix)

    def test_convert_partition(self):

        output_file = os.path.join(temp_dir, "part.txt")
        batch.convert_partition(concat_par_nexus[0], output_file)

        with open(output_file) as fh:
            self.assertEqual(fh.readline(), "DNA, gene1 = 1-10\n")

    def test_convert_partition_charset(self):

        self.assertRaises(InputError,
                          lambda: batch.convert_partition(
                              concat_par_raxml[0],
                              os.path.join(temp_dir, "part.nex"),
                              output_format="charset"))


if __name__ == "__main__":
    unittest.main()
